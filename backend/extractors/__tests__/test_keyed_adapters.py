"""
Unit tests for the source adapters that need API keys (JSearch, Adzuna, Reed).

Run: python3 -m pytest extractors/__tests__/test_keyed_adapters.py -v
"""
import asyncio
import base64

import httpx

from config.settings import Settings
from enrichment.rate_limiter import RateLimitConfig, RateLimiter
from extractors.adzuna import AdzunaExtractor
from extractors.jsearch import JSearchExtractor, build_location
from extractors.reed import ReedExtractor


def make_settings(**keys) -> Settings:
    return Settings(_env_file=None, **keys)


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


JSEARCH_POSTING = {
    "job_id": "js-1",
    "employer_name": "Acme",
    "job_title": "Frontend Engineer",
    "job_city": "Austin",
    "job_state": "TX",
    "job_is_remote": False,
    "job_min_salary": 100000,
    "job_max_salary": 150000,
    "job_salary_period": "YEAR",
    "job_description": "Build React apps",
    "job_highlights": {
        "Qualifications": ["3+ years React"],
        "Benefits": ["Health insurance"],
    },
    "job_required_skills": ["React", "TypeScript"],
    "job_apply_link": "https://acme.com/careers/1",
    "job_posted_at_datetime_utc": "2024-05-01T00:00:00.000Z",
}


class TestJSearchExtractor:
    """Tests for JSearchExtractor."""

    def test_four_queries_deduplicated_by_job_id(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"data": [JSEARCH_POSTING, {"job_id": "js-2"}]})

        extractor = JSearchExtractor(
            settings=make_settings(RAPIDAPI_KEY="rapid-key"),
            client=make_client(handler),
        )

        jobs = asyncio.run(extractor.fetch_jobs())

        assert len(requests) == 4
        assert requests[0].headers["X-RapidAPI-Key"] == "rapid-key"
        assert requests[0].headers["X-RapidAPI-Host"] == "jsearch.p.rapidapi.com"
        assert requests[0].url.params["query"] == "software engineer"
        assert len(jobs) == 1

        job = jobs[0]
        assert job.location == "Austin, TX"
        assert job.salary == "$100k - $150k/yr"
        assert job.requirements == ["3+ years React"]
        assert job.benefits == ["Health insurance"]
        assert job.tags == ["React", "TypeScript"]
        assert job.source_id == "js-1"

    def test_requests_go_through_limiter(self):
        waits = []

        async def fake_sleep(seconds):
            waits.append(seconds)

        limiter = RateLimiter(
            "jsearch",
            RateLimitConfig(requests_per_second=1),
            clock=lambda: 0.0,
            sleep=fake_sleep,
        )
        extractor = JSearchExtractor(
            settings=make_settings(RAPIDAPI_KEY="rapid-key"),
            client=make_client(lambda request: httpx.Response(200, json={"data": []})),
            limiter=limiter,
        )

        asyncio.run(extractor.fetch_jobs())

        # Clock never advances, so each request queues one window behind the last
        assert waits == [1.0, 2.0, 3.0]

    def test_build_location(self):
        assert build_location({"job_is_remote": True, "job_city": "Austin"}) == "Remote"
        assert build_location({"job_city": " ", "job_state": None}) == "Remote"
        assert build_location({"job_city": "Denver", "job_state": ""}) == "Denver"

    def test_hourly_salary(self):
        posting = dict(JSEARCH_POSTING, job_min_salary=40, job_max_salary=60, job_salary_period="HOUR")
        extractor = JSearchExtractor(settings=make_settings(RAPIDAPI_KEY="k"))

        assert extractor._normalize(posting).salary == "$40 - $60/hr"


def adzuna_result(i: int) -> dict:
    return {
        "id": str(i),
        "title": "Python Developer",
        "company": {"display_name": "Acme"},
        "location": {"display_name": "New York, NY"},
        "category": {"tag": "it-jobs"},
        "salary_min": 90000,
        "salary_max": None,
        "redirect_url": f"https://www.adzuna.com/details/{i}",
        "created": "2024-05-01T00:00:00Z",
    }


class TestAdzunaExtractor:
    """Tests for AdzunaExtractor."""

    def test_stops_on_short_page(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"results": [adzuna_result(1), adzuna_result(2)]})

        extractor = AdzunaExtractor(
            settings=make_settings(ADZUNA_APP_ID="app-id", ADZUNA_API_KEY="app-key"),
            client=make_client(handler),
        )

        jobs = asyncio.run(extractor.fetch_jobs())

        assert len(requests) == 1
        assert requests[0].url.path == "/v1/api/jobs/us/search/1"
        assert requests[0].url.params["app_id"] == "app-id"
        assert requests[0].url.params["app_key"] == "app-key"
        assert len(jobs) == 2
        assert jobs[0].salary == "$90k+/yr"
        assert jobs[0].location == "New York, NY"
        assert jobs[0].tags == ["it-jobs", "Python"]

    def test_second_page_after_full_page(self):
        pages = []

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.path.rsplit("/", 1)[-1])
            pages.append(page)
            count = 50 if page == 1 else 3
            return httpx.Response(200, json={"results": [adzuna_result(i) for i in range(count)]})

        extractor = AdzunaExtractor(
            settings=make_settings(ADZUNA_APP_ID="app-id", ADZUNA_API_KEY="app-key"),
            client=make_client(handler),
        )

        jobs = asyncio.run(extractor.fetch_jobs())

        assert pages == [1, 2]
        assert len(jobs) == 53


class TestReedExtractor:
    """Tests for ReedExtractor."""

    def test_basic_auth_and_dedup(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"results": [{
                "jobId": 555,
                "employerName": "London Soft Ltd",
                "jobTitle": "Software Developer",
                "locationName": "London",
                "minimumSalary": 40000,
                "maximumSalary": 60000,
                "jobDescription": "Work with Python and AWS",
                "jobUrl": "https://www.reed.co.uk/jobs/555",
                "date": "01/05/2024",
            }]})

        extractor = ReedExtractor(
            settings=make_settings(REED_API_KEY="reed-key"),
            client=make_client(handler),
        )

        jobs = asyncio.run(extractor.fetch_jobs())

        expected = "Basic " + base64.b64encode(b"reed-key:").decode()
        assert len(requests) == 2
        assert requests[0].headers["Authorization"] == expected
        assert len(jobs) == 1
        job = jobs[0]
        assert job.salary == "£40k - £60k"
        assert job.source_id == "555"
        assert job.tags == ["Python", "AWS"]
