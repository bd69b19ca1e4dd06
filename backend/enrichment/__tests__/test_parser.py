"""
Unit tests for the job description parser.

Run: python3 -m pytest enrichment/__tests__/test_parser.py -v
"""

from enrichment.parser import (
    MAX_KEYWORD_FALLBACK,
    MAX_REQUIREMENTS,
    classify_header,
    find_culture,
    find_salary,
    find_team_size,
    find_tech_stack,
    parse_job_description,
)


SAMPLE_DESCRIPTION = """About the role
We build payment infrastructure used by thousands of merchants.

Requirements:
• 5+ years of Python experience
• Experience with PostgreSQL and Redis
• Strong communication skills

Benefits:
- Health insurance
- Unlimited PTO

Compensation: $120,000 - $180,000 per year
"""


class TestParseJobDescription:
    """Tests for parse_job_description()."""

    def test_empty_input_returns_empty_result(self):
        """Empty, whitespace-only and non-string input should never raise."""
        for value in ("", "   \n ", None, 123):
            result = parse_job_description(value)
            assert result.requirements == []
            assert result.benefits == []
            assert result.culture == []
            assert result.tech_stack == []
            assert result.salary is None
            assert result.team_size is None
            assert result.has_content is False

    def test_section_bullets(self):
        """Bullets under "Requirements:" and "Benefits:" headers become lists."""
        result = parse_job_description(SAMPLE_DESCRIPTION)

        assert result.requirements == [
            "5+ years of Python experience",
            "Experience with PostgreSQL and Redis",
            "Strong communication skills",
        ]
        assert result.benefits == ["Health insurance", "Unlimited PTO"]
        assert result.has_content is True

    def test_salary_and_tech_stack_from_full_text(self):
        result = parse_job_description(SAMPLE_DESCRIPTION)

        assert result.salary == "$120,000 - $180,000 per year"
        assert result.tech_stack == ["Python", "PostgreSQL", "Redis"]

    def test_html_description(self):
        """HTML headings and list items keep their section structure."""
        html = (
            "<p>Join us!</p>"
            "<h3>Benefits</h3>"
            "<ul><li>Health, dental and vision</li><li>Remote stipend budget</li></ul>"
        )
        result = parse_job_description(html)

        assert result.benefits == ["Health, dental and vision", "Remote stipend budget"]

    def test_section_list_is_capped(self):
        bullets = "\n".join(f"• Experience with tool number {i}" for i in range(15))
        result = parse_job_description(f"Requirements:\n{bullets}\n")

        assert len(result.requirements) == MAX_REQUIREMENTS
        assert result.requirements[0] == "Experience with tool number 0"

    def test_keyword_fallback_without_sections(self):
        """With no recognizable headers, matching lines are used instead."""
        text = (
            "We need 5+ years of experience with Python.\n"
            "You will get health insurance and a 401(k).\n"
            "Flexible hours."
        )
        result = parse_job_description(text)

        assert result.requirements == ["We need 5+ years of experience with Python."]
        assert result.benefits == [
            "You will get health insurance and a 401(k).",
            "Flexible hours.",
        ]

    def test_keyword_fallback_is_capped(self):
        lines = "\n".join(f"Experience with system number {i} is required" for i in range(12))
        result = parse_job_description(lines)

        assert len(result.requirements) == MAX_KEYWORD_FALLBACK

    def test_team_section_preferred_over_whole_text(self):
        """Team size comes from a team section before scanning everything."""
        text = (
            "We have 500 employees worldwide.\n\n"
            "## The Team\n"
            "You'll be one of 12 engineers.\n"
        )
        result = parse_job_description(text)

        assert result.team_size == "12+"

    def test_combined_header_counts_once(self):
        """A "Requirements & Benefits" header is a requirements section only."""
        text = (
            "Requirements & Benefits:\n"
            "• Bachelor's degree in Computer Science\n"
            "• Comprehensive health insurance\n"
        )
        result = parse_job_description(text)

        assert result.requirements == [
            "Bachelor's degree in Computer Science",
            "Comprehensive health insurance",
        ]


class TestClassifyHeader:
    """Tests for classify_header() priority order."""

    def test_families(self):
        assert classify_header("Requirements") == "requirements"
        assert classify_header("What you'll bring") == "requirements"
        assert classify_header("What we offer") == "benefits"
        assert classify_header("Perks") == "benefits"
        assert classify_header("About the team") == "team"

    def test_first_family_wins(self):
        assert classify_header("Requirements & Benefits") == "requirements"

    def test_unknown_header(self):
        assert classify_header("Responsibilities") is None


class TestFindTechStack:
    """Tests for find_tech_stack()."""

    def test_short_keywords_need_word_boundaries(self):
        """"Go" must not match inside Golang or Google."""
        assert find_tech_stack("We use Golang and Google Cloud") == []
        assert find_tech_stack("Experience with Go and Python") == ["Go", "Python"]

    def test_longest_keyword_wins(self):
        assert find_tech_stack("Spring Boot microservices") == ["Spring Boot"]

    def test_java_and_javascript_are_distinct(self):
        assert find_tech_stack("JavaScript and TypeScript, some Java") == [
            "JavaScript",
            "TypeScript",
            "Java",
        ]

    def test_symbol_keywords(self):
        assert find_tech_stack("C++ and C# developers") == ["C++", "C#"]

    def test_canonical_casing_and_dedup(self):
        assert find_tech_stack("python, REACT, Python again") == ["Python", "React"]


class TestFindSalary:
    """Tests for find_salary()."""

    def test_dollar_range_with_period(self):
        text = "Compensation: $120,000 - $180,000 per year plus equity"
        assert find_salary(text) == "$120,000 - $180,000 per year"

    def test_k_notation(self):
        assert find_salary("Pay: $150k+ DOE") == "$150k+"
        assert find_salary("Range $120k-$160k") == "$120k-$160k"

    def test_pound_range(self):
        assert find_salary("Salary £60,000 - £90,000") == "£60,000 - £90,000"

    def test_no_salary(self):
        assert find_salary("Competitive pay") is None


class TestFindTeamSize:
    """Tests for find_team_size()."""

    def test_range(self):
        assert find_team_size("You'll join a team of 5-10 engineers") == "5-10"

    def test_minimum(self):
        assert find_team_size("Over 200 engineers work here") == "200+"

    def test_qualitative(self):
        assert find_team_size("We are a small team") == "small team"

    def test_exact(self):
        assert find_team_size("Team size: 8") == "8"

    def test_none(self):
        assert find_team_size("No numbers here") is None


class TestFindCulture:
    """Tests for find_culture()."""

    def test_signals_lowercased_in_vocabulary_order(self):
        text = "Remote-first company with unlimited PTO and a collaborative, fast-paced environment"
        assert find_culture(text) == ["remote-first", "unlimited pto", "collaborative", "fast-paced"]

    def test_no_signals(self):
        assert find_culture("We write software.") == []
