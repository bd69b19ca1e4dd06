"""
Unit tests for the keyless source adapters.

Each adapter gets an httpx.AsyncClient backed by MockTransport, so the
tests pin down request shapes and field mapping without network access.

Run: python3 -m pytest extractors/__tests__/test_keyless_adapters.py -v
"""
import asyncio

import httpx
import pytest

from extractors.arbeitnow import ArbeitnowExtractor
from extractors.greenhouse import GreenhouseExtractor
from extractors.lever import LeverExtractor, capitalize_slug, parse_requirements
from extractors.remoteok import RemoteOKExtractor
from extractors.remotive import RemotiveExtractor
from extractors.themuse import TheMuseExtractor, map_company_size


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload, requests: list = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return httpx.Response(200, json=payload)
    return handler


def remoteok_posting(i: int, **fields) -> dict:
    posting = {
        "id": str(i),
        "company": f"Company {i}",
        "position": f"Engineer {i}",
        "location": "Worldwide",
        "url": f"https://remoteok.com/remote-jobs/{i}",
        "date": "2024-05-01T10:00:00+00:00",
    }
    posting.update(fields)
    return posting


class TestRemoteOKExtractor:
    """Tests for RemoteOKExtractor."""

    def test_skips_legal_notice_and_maps_fields(self):
        raw = [
            {"legal": "Terms of use", "company": "RemoteOK", "position": "Legal"},
            remoteok_posting(
                1,
                company=" Acme ",
                position="Senior Backend Engineer",
                tags=["python", "aws", "Python"],
                description="<p>Build <b>APIs</b></p>",
                salary_min=120000,
                salary_max=160000,
                company_logo="https://remoteok.com/assets/acme.png",
            ),
            {"company": "", "position": "No company"},
        ]
        extractor = RemoteOKExtractor(client=make_client(json_handler(raw)))

        jobs = asyncio.run(extractor.fetch_jobs())

        assert len(jobs) == 1
        job = jobs[0]
        assert job.company == "Acme"
        assert job.role == "Senior Backend Engineer"
        assert job.location == "Remote"
        assert job.salary == "$120k - $160k/yr"
        assert job.description == "Build APIs"
        assert job.tags == ["python", "aws"]
        assert job.company_logo == "https://remoteok.com/assets/acme.png"
        assert job.source_name == "remoteok"
        assert job.source_id == "1"
        assert job.apply_url == "https://remoteok.com/remote-jobs/1"

    def test_capped_at_max_jobs(self):
        raw = [{"legal": "notice"}] + [remoteok_posting(i) for i in range(5)]
        extractor = RemoteOKExtractor(client=make_client(json_handler(raw)), max_jobs=2)

        jobs = asyncio.run(extractor.fetch_jobs())

        assert [job.source_id for job in jobs] == ["0", "1"]

    def test_unexpected_shape_raises(self):
        extractor = RemoteOKExtractor(client=make_client(json_handler({"error": "nope"})))

        with pytest.raises(ValueError):
            asyncio.run(extractor.fetch_jobs())

    def test_http_error_raises(self):
        client = make_client(lambda request: httpx.Response(503))
        extractor = RemoteOKExtractor(client=client)

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(extractor.fetch_jobs())

    def test_sends_identifying_user_agent(self):
        requests = []
        extractor = RemoteOKExtractor(client=make_client(json_handler([{"legal": ""}], requests)))

        asyncio.run(extractor.fetch_jobs())

        assert requests[0].headers["User-Agent"].startswith("JobPipeline/")


class TestArbeitnowExtractor:
    def test_maps_fields(self):
        payload = {"data": [{
            "slug": "backend-dev-berlin-123",
            "company_name": "Berlin Tech GmbH",
            "title": "Backend Developer",
            "description": "<p>Go and Postgres</p>",
            "remote": True,
            "location": "Berlin",
            "tags": ["Engineering"],
            "job_types": ["Full Time"],
            "url": "https://www.arbeitnow.com/jobs/backend-dev-berlin-123",
            "created_at": 1714557600,
        }]}
        extractor = ArbeitnowExtractor(client=make_client(json_handler(payload)))

        jobs = asyncio.run(extractor.fetch_jobs())

        job = jobs[0]
        assert job.location == "Berlin (Remote)"
        assert job.tags == ["Engineering", "Full Time"]
        assert job.created_at == "2024-05-01T10:00:00+00:00"
        assert job.source_id == "backend-dev-berlin-123"
        assert job.source_name == "arbeitnow"


class TestRemotiveExtractor:
    def test_request_and_mapping(self):
        requests = []
        payload = {"jobs": [
            {
                "id": 77,
                "company_name": "Doist",
                "title": "Python Engineer",
                "salary": " $100k - $120k ",
                "url": "https://remotive.com/remote-jobs/77",
            },
            {"id": 78, "company_name": "Doist", "title": "Designer", "salary": ""},
        ]}
        extractor = RemotiveExtractor(client=make_client(json_handler(payload, requests)))

        jobs = asyncio.run(extractor.fetch_jobs())

        assert requests[0].url.params["category"] == "software-dev"
        assert [job.location for job in jobs] == ["Remote", "Remote"]
        assert jobs[0].salary == "$100k - $120k"
        assert jobs[1].salary is None
        assert jobs[0].source_id == "77"


class TestTheMuseExtractor:
    """Tests for TheMuseExtractor pagination and mapping."""

    def test_pages_until_page_count(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            page = int(request.url.params["page"])
            return httpx.Response(200, json={
                "page_count": 2,
                "results": [{
                    "id": page,
                    "name": f"Engineer {page}",
                    "company": {
                        "name": "Muse Co",
                        "size": "51-200",
                        "perks": [{"name": "Free lunch"}],
                    },
                    "locations": [{"name": "Flexible / Remote"}],
                    "refs": {"landing_page": f"https://www.themuse.com/jobs/{page}"},
                    "publication_date": "2024-05-01T00:00:00Z",
                }],
            })

        extractor = TheMuseExtractor(client=make_client(handler))

        jobs = asyncio.run(extractor.fetch_jobs())

        assert [r.url.params["page"] for r in requests] == ["0", "1"]
        assert len(jobs) == 2
        assert jobs[0].location == "Remote"
        assert jobs[0].team_size == "Growing company"
        assert jobs[0].benefits == ["Free lunch"]
        assert "api_key" not in requests[0].url.params

    def test_api_key_sent_when_configured(self):
        class FakeSettings:
            MUSE_API_KEY = "muse-key"

        requests = []
        payload = {"page_count": 1, "results": []}
        extractor = TheMuseExtractor(settings=FakeSettings(), client=make_client(json_handler(payload, requests)))

        asyncio.run(extractor.fetch_jobs())

        assert len(requests) == 1
        assert requests[0].url.params["api_key"] == "muse-key"

    @staticmethod
    def muse_posting(i: int, **fields) -> dict:
        posting = {
            "id": i,
            "name": f"Engineer {i}",
            "company": {"name": f"Muse Co {i}"},
            "locations": [{"name": "New York, NY"}],
            "refs": {"landing_page": f"https://www.themuse.com/jobs/{i}"},
        }
        posting.update(fields)
        return posting

    def test_later_page_failure_keeps_fetched_pages(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            page = int(request.url.params["page"])
            if page == 2:
                return httpx.Response(502)
            return httpx.Response(200, json={"page_count": 5, "results": [self.muse_posting(page)]})

        extractor = TheMuseExtractor(client=make_client(handler))

        jobs = asyncio.run(extractor.fetch_jobs())

        assert [job.company for job in jobs] == ["Muse Co 0", "Muse Co 1"]
        assert [r.url.params["page"] for r in requests] == ["0", "1", "2"]

    def test_first_page_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        extractor = TheMuseExtractor(client=make_client(handler))

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(extractor.fetch_jobs())

    def test_malformed_posting_skipped(self):
        payload = {"page_count": 1, "results": [
            self.muse_posting(1, locations=["New York, NY"]),
            self.muse_posting(2, company="Muse Co"),
            self.muse_posting(3),
        ]}
        extractor = TheMuseExtractor(client=make_client(json_handler(payload)))

        jobs = asyncio.run(extractor.fetch_jobs())

        # a bare-string location is treated as unknown (remote), a bare-string company is dropped
        assert [job.company for job in jobs] == ["Muse Co 1", "Muse Co 3"]
        assert jobs[0].location == "Remote"
        assert jobs[1].location == "New York, NY"

    def test_map_company_size(self):
        assert map_company_size("10001+") == "Enterprise"
        assert map_company_size("7-9") == "7-9"
        assert map_company_size(None) is None


class TestGreenhouseExtractor:
    """Tests for GreenhouseExtractor."""

    def test_filters_engineering_and_isolates_board_failures(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if "/brokenco/" in request.url.path:
                return httpx.Response(500)
            return httpx.Response(200, json={"jobs": [
                {
                    "id": 4001,
                    "title": "Software Engineer, Infrastructure",
                    "location": {"name": "San Francisco,  CA"},
                    "content": "&lt;p&gt;Build the platform&lt;/p&gt;",
                    "departments": [{"name": "Engineering"}],
                    "absolute_url": "https://boards.greenhouse.io/stripe/jobs/4001",
                    "updated_at": "2024-05-01T10:00:00-04:00",
                },
                {
                    "id": 4002,
                    "title": "Account Executive",
                    "location": {"name": "New York"},
                    "departments": [{"name": "Sales"}],
                },
            ]})

        extractor = GreenhouseExtractor(client=make_client(handler), boards=["stripe", "brokenco"])

        jobs = asyncio.run(extractor.fetch_jobs())

        assert len(requests) == 2
        assert requests[0].url.params["content"] == "true"
        assert len(jobs) == 1
        job = jobs[0]
        assert job.company == "Stripe"
        assert job.location == "San Francisco, CA"
        assert job.description == "Build the platform"
        assert job.source_id == "greenhouse-4001"
        assert "Engineering" in job.tags


class TestLeverExtractor:
    """Tests for LeverExtractor."""

    def test_filters_and_maps(self):
        postings = [
            {
                "id": "abc-123",
                "text": "Senior ML Engineer",
                "categories": {"team": "Engineering", "location": "San Francisco"},
                "description": "<p>Train models</p>",
                "lists": [
                    {"text": "Responsibilities", "content": "<li>Ship things</li>"},
                    {"text": "Requirements", "content": "<li>Python</li><li>PyTorch &amp; CUDA</li>"},
                ],
                "hostedUrl": "https://jobs.lever.co/weights-biases/abc-123",
                "applyUrl": "https://jobs.lever.co/weights-biases/abc-123/apply",
                "createdAt": 1714557600000,
            },
            {"id": "def", "text": "Email Marketing Lead", "categories": {"team": "Marketing"}},
        ]
        extractor = LeverExtractor(client=make_client(json_handler(postings)), companies=["weights-biases"])

        jobs = asyncio.run(extractor.fetch_jobs())

        assert len(jobs) == 1
        job = jobs[0]
        assert job.company == "Weights Biases"
        assert job.requirements == ["Python", "PyTorch & CUDA"]
        assert job.tags == ["Engineering", "Senior", "ML"]
        assert job.created_at == "2024-05-01T10:00:00+00:00"
        assert job.apply_url == "https://jobs.lever.co/weights-biases/abc-123/apply"

    def test_company_failure_isolated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/broken"):
                return httpx.Response(404)
            return httpx.Response(200, json=[{"id": "1", "text": "Backend Developer", "categories": {}}])

        extractor = LeverExtractor(client=make_client(handler), companies=["broken", "ramp"])

        jobs = asyncio.run(extractor.fetch_jobs())

        assert [job.company for job in jobs] == ["Ramp"]
        assert jobs[0].location == "Remote"

    def test_helpers(self):
        assert capitalize_slug("weights-biases") == "Weights Biases"
        assert parse_requirements(None) == []
        assert parse_requirements([{"text": "Basic Qualifications", "content": "<li>SQL</li>"}]) == ["SQL"]
