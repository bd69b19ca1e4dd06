"""
Job description parser.

Pure, deterministic extraction of structured data from messy job
descriptions:

1. Clean HTML (keeping line structure)
2. Split into sections on header-like lines (markdown "## X" or "Label:")
3. Classify each header: requirements, then benefits, then team.
   A header is assigned to the FIRST family it matches, so a header such as
   "Requirements & Benefits" is a requirements section only.
4. Take bullets from classified sections (or plain lines when there are none)
5. Fall back to keyword-line scanning over the whole text when no section
   produced requirements/benefits
6. Salary: first matching pattern in priority order
7. Tech stack: one alternation over the keyword list, longest keyword first
8. Culture: independent phrase tests, lowercased
9. Team size: team section first, then the whole text
10. Cap list sizes
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from utils.text import html_to_text

MAX_REQUIREMENTS = 10
MAX_BENEFITS = 10
MAX_TECH_STACK = 20
MAX_CULTURE = 8
MAX_KEYWORD_FALLBACK = 8
MAX_SECTION_LINES = 10


@dataclass
class ParsedJobData:
    requirements: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    team_size: Optional[str] = None
    culture: list[str] = field(default_factory=list)
    salary: Optional[str] = None
    tech_stack: list[str] = field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(self.requirements or self.benefits or self.culture)


# =============================================================================
# Vocabularies
# =============================================================================

TECH_KEYWORDS: list[str] = [
    # Frontend
    "React", "Vue", "Angular", "Svelte", "Next.js", "Nuxt", "Gatsby",
    "Remix", "Astro", "Solid.js", "Preact", "Ember.js", "Backbone.js",
    "jQuery", "HTMX", "Alpine.js", "Lit", "Stencil", "Web Components",
    # Languages
    "TypeScript", "JavaScript", "Python", "Go", "Rust", "Java", "Kotlin",
    "Swift", "Ruby", "PHP", "C#", "C++", "Scala", "Elixir", "Erlang",
    "Haskell", "Clojure", "Dart", "R", "Perl", "Lua", "Zig", "OCaml",
    # Backend frameworks
    "Node.js", "Express", "Fastify", "NestJS", "Deno", "Bun",
    "Django", "Flask", "FastAPI", "Spring Boot", "Spring",
    "Rails", "Laravel", "Gin", "Fiber", "Echo", "Actix", "Axum",
    "ASP.NET", ".NET", "Phoenix",
    # Cloud & infra
    "AWS", "GCP", "Azure", "Vercel", "Netlify", "Cloudflare",
    "Heroku", "DigitalOcean", "Fly.io", "Railway",
    # Containers & orchestration
    "Docker", "Kubernetes", "K8s", "Terraform", "Pulumi", "Ansible",
    "Helm", "ArgoCD", "Nomad", "ECS", "EKS", "GKE", "AKS",
    # Databases
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch",
    "DynamoDB", "Cassandra", "SQLite", "MariaDB", "CockroachDB",
    "Firestore", "Firebase", "Supabase", "PlanetScale", "Neon",
    "ClickHouse", "TimescaleDB", "Neo4j", "Couchbase",
    # Messaging & streaming
    "Kafka", "RabbitMQ", "SQS", "SNS", "NATS", "Pulsar",
    # APIs & protocols
    "GraphQL", "REST", "gRPC", "tRPC", "WebSocket", "OpenAPI",
    # Data & ML
    "TensorFlow", "PyTorch", "Pandas", "NumPy", "Spark", "Airflow",
    "dbt", "Snowflake", "BigQuery", "Redshift", "Databricks",
    "Jupyter", "scikit-learn", "Hugging Face", "LangChain", "OpenAI",
    # CI/CD & observability
    "GitHub Actions", "GitLab CI", "Jenkins", "CircleCI", "Travis CI",
    "Buildkite", "Datadog", "Grafana", "Prometheus", "Sentry",
    "New Relic", "PagerDuty", "Splunk",
    # Mobile
    "React Native", "Flutter", "SwiftUI", "Jetpack Compose", "Ionic",
    "Expo", "Capacitor",
    # Testing
    "Jest", "Vitest", "Cypress", "Playwright", "Selenium",
    "Mocha", "pytest", "JUnit", "RSpec", "Storybook",
    # Other tools
    "Git", "Linux", "Nginx", "Caddy", "Webpack", "Vite", "esbuild",
    "Tailwind CSS", "Tailwind", "Sass", "CSS-in-JS", "Styled Components",
    "Figma", "Prisma", "Drizzle", "Sequelize",
    "Redux", "Zustand", "MobX", "Jotai", "Recoil", "XState",
    "OAuth", "SAML", "Auth0", "Clerk", "Okta",
    "Stripe", "Twilio", "SendGrid", "Segment",
    "Solidity", "Ethereum", "Web3",
]

# lowercase -> canonical casing
TECH_KEYWORD_CANONICAL: dict[str, str] = {kw.lower(): kw for kw in TECH_KEYWORDS}

# Longest first so "Go" cannot win over "Golang"-style longer tokens and
# "Spring Boot" wins over "Spring". Lookarounds instead of \b so keywords
# ending in symbols (C++, C#) still match before a space.
_TECH_SORTED = sorted(TECH_KEYWORD_CANONICAL.values(), key=len, reverse=True)
TECH_REGEX = re.compile(
    r"(?<!\w)(" + "|".join(re.escape(kw) for kw in _TECH_SORTED) + r")(?!\w)",
    re.IGNORECASE,
)

CULTURE_SIGNALS: list[str] = [
    "remote-first", "remote friendly", "fully remote", "hybrid", "on-site",
    "async-first", "async communication",
    "work-life balance", "work life balance",
    "unlimited PTO", "unlimited vacation",
    "flexible hours", "flexible schedule", "flex time",
    "distributed team", "global team",
    "diverse and inclusive", "diversity and inclusion", "D&I", "DEI", "inclusive culture",
    "collaborative", "fast-paced", "fast paced", "startup culture",
    "flat hierarchy", "no bureaucracy",
    "transparent", "radical transparency", "open communication",
    "mission-driven", "mission driven", "impact-driven", "purpose-driven",
    "innovative", "cutting-edge", "cutting edge",
    "mentorship", "career growth", "professional development",
    "learning culture", "continuous learning",
    "autonomy", "self-directed", "ownership mentality",
    "open-source", "open source",
    "pet-friendly", "dog-friendly",
    "team-oriented", "team oriented",
    "agile", "cross-functional", "cross functional",
    "data-driven", "customer-first", "customer obsessed", "results-oriented",
    "meritocracy", "psychological safety",
    "4-day work week", "four-day work week",
    "sabbatical", "volunteer time",
]

CULTURE_REGEXES = [
    (signal.lower(), re.compile(r"\b" + re.escape(signal) + r"\b", re.IGNORECASE))
    for signal in CULTURE_SIGNALS
]


# =============================================================================
# Section headers
# =============================================================================

_HEADER_TAIL = r"\s*[:：\-—]?\s*\n?"

REQUIREMENT_HEADERS = re.compile(
    r"(?:^|\n)\s*#{0,4}\s*(?:requirements?|what\s+you(?:'ll|\s+will)\s+(?:need|bring)|"
    r"qualifications?|about\s+you|who\s+you\s+are|your\s+(?:background|experience|skills)|"
    r"must[- ]hav(?:e|es)|minimum\s+qualifications?|what\s+we(?:'re|\s+are)\s+looking\s+for|"
    r"desired\s+skills?|key\s+skills?)" + _HEADER_TAIL,
    re.IGNORECASE,
)

BENEFIT_HEADERS = re.compile(
    r"(?:^|\n)\s*#{0,4}\s*(?:benefits?|what\s+we\s+offer|perks?|"
    r"compensation(?:\s+(?:and|&)\s+benefits?)?|why\s+(?:join\s+us|work\s+(?:here|with\s+us))|"
    r"our\s+(?:offer|perks|benefits)|total\s+rewards?)" + _HEADER_TAIL,
    re.IGNORECASE,
)

TEAM_HEADERS = re.compile(
    r"(?:^|\n)\s*#{0,4}\s*(?:(?:about\s+)?(?:the\s+)?team|team\s+size|who\s+we\s+are|the\s+role|"
    r"about\s+(?:the\s+)?(?:team|group|org))" + _HEADER_TAIL,
    re.IGNORECASE,
)

SECTION_REQUIREMENTS = "requirements"
SECTION_BENEFITS = "benefits"
SECTION_TEAM = "team"

# Tested in this order; the first match wins
HEADER_FAMILIES: list[tuple[str, re.Pattern]] = [
    (SECTION_REQUIREMENTS, REQUIREMENT_HEADERS),
    (SECTION_BENEFITS, BENEFIT_HEADERS),
    (SECTION_TEAM, TEAM_HEADERS),
]

# A markdown header line, or a capitalized "Label:" line with nothing after the colon
HEADER_LINE = re.compile(
    r"^[ \t]*#{1,4}[ \t]+.+$|^[ \t]*[A-Z][A-Za-z \t/&'’(),-]*[:：][ \t]*$",
    re.MULTILINE,
)

BULLET_MARKER = re.compile(r"^(?:[•●○◦▪▸►\-*>]|\d+[.)]\s)")
BULLET_PREFIX = re.compile(r"^(?:[•●○◦▪▸►\-*>]|\d+[.)]\s)\s*")
LEADING_BULLET = re.compile(r"^[•●○◦▪▸►\-*>]\s*")


# =============================================================================
# Salary and team size
# =============================================================================

_PER_YEAR = r"(?:\s*(?:per\s+(?:year|annum)|/\s*(?:yr|year|annum)|p\.?a\.?|annually))?"

SALARY_PATTERNS = [
    # "$120,000 - $180,000" or "$120k-$180k"
    re.compile(r"\$[\d,]+k?\s*[-–—to]+\s*\$[\d,]+k?" + _PER_YEAR, re.IGNORECASE),
    # "€80,000 - €120,000"
    re.compile(r"€[\d,]+k?\s*[-–—to]+\s*€[\d,]+k?" + _PER_YEAR, re.IGNORECASE),
    # "£60,000 - £90,000"
    re.compile(r"£[\d,]+k?\s*[-–—to]+\s*£[\d,]+k?" + _PER_YEAR, re.IGNORECASE),
    # "up to $200,000"
    re.compile(r"up\s+to\s+[£€$][\d,]+k?" + _PER_YEAR, re.IGNORECASE),
    # "$150k+"
    re.compile(r"[£€$][\d,]+k?\+" + _PER_YEAR, re.IGNORECASE),
    # "120,000 - 150,000 USD"
    re.compile(r"[\d,]+k?\s*[-–—to]+\s*[\d,]+k?\s*(?:USD|EUR|GBP)" + _PER_YEAR, re.IGNORECASE),
    # "salary: $120,000"
    re.compile(r"salary\s*[:：]\s*[£€$][\d,]+k?", re.IGNORECASE),
    # "base pay $X" / "base salary: $X"
    re.compile(r"base\s+(?:pay|salary|compensation)\s*[:：]?\s*[£€$][\d,]+k?", re.IGNORECASE),
]

_PEOPLE = r"(?:people|engineers|developers|members|person|employees)"

# (pattern, kind) - kind decides how the match is rendered
TEAM_SIZE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"team\s+of\s+(\d+)\s*[-–—to]+\s*(\d+)", re.IGNORECASE), "range"),
    (re.compile(r"(\d+)\s*[-–—to]+\s*(\d+)\s+" + _PEOPLE, re.IGNORECASE), "range"),
    (re.compile(r"(\d+)\+?\s+" + _PEOPLE, re.IGNORECASE), "minimum"),
    (re.compile(r"\b(small|mid-?sized?|medium|large|growing)\s+team\b", re.IGNORECASE), "qualitative"),
    (re.compile(r"team\s+size\s*[:：of]+\s*(\d+)", re.IGNORECASE), "exact"),
]

REQUIREMENT_LINE_PATTERNS = [
    re.compile(r"(\d+)\+?\s*years?\s*(?:of\s+)?(?:experience|exp)", re.IGNORECASE),
    re.compile(r"bachelor'?s?|master'?s?|ph\.?d|degree\s+in", re.IGNORECASE),
    re.compile(r"proficien(?:t|cy)\s+in", re.IGNORECASE),
    re.compile(r"experience\s+(?:with|in|using|building)", re.IGNORECASE),
    re.compile(r"strong\s+(?:knowledge|understanding|background|skills?)", re.IGNORECASE),
    re.compile(r"familiar(?:ity)?\s+with", re.IGNORECASE),
    re.compile(r"ability\s+to", re.IGNORECASE),
    re.compile(r"must\s+have", re.IGNORECASE),
    re.compile(r"required\s*[:：]", re.IGNORECASE),
    re.compile(r"proven\s+(?:track\s+record|experience|ability)", re.IGNORECASE),
    re.compile(r"deep\s+(?:understanding|knowledge|expertise)", re.IGNORECASE),
    re.compile(r"hands[- ]on\s+experience", re.IGNORECASE),
    re.compile(r"expertise\s+(?:in|with)", re.IGNORECASE),
]

BENEFIT_LINE_PATTERNS = [
    re.compile(r"health\s*(?:care|insurance)", re.IGNORECASE),
    re.compile(r"401\s*\(?k\)?", re.IGNORECASE),
    re.compile(r"(?:paid\s*)?(?:time\s*off|pto|vacation|leave|holiday)", re.IGNORECASE),
    re.compile(r"remote|work\s*from\s*home|wfh", re.IGNORECASE),
    re.compile(r"equity|stock\s*option|rsu", re.IGNORECASE),
    re.compile(r"flexible\s*(?:hours|schedule|work)", re.IGNORECASE),
    re.compile(r"parental\s*leave|maternity|paternity", re.IGNORECASE),
    re.compile(r"learning\s*(?:budget|stipend|allowance)", re.IGNORECASE),
    re.compile(r"dental|vision|medical", re.IGNORECASE),
    re.compile(r"gym|wellness|fitness", re.IGNORECASE),
    re.compile(r"commuter|transit", re.IGNORECASE),
    re.compile(r"lunch|meals?|snacks?|catering", re.IGNORECASE),
    re.compile(r"bonus|signing\s*bonus", re.IGNORECASE),
    re.compile(r"relocation", re.IGNORECASE),
    re.compile(r"professional\s+development", re.IGNORECASE),
    re.compile(r"conference|training", re.IGNORECASE),
    re.compile(r"home\s*office\s*(?:budget|stipend|setup)", re.IGNORECASE),
    re.compile(r"internet\s*(?:stipend|allowance|reimbursement)", re.IGNORECASE),
    re.compile(r"mental\s*health", re.IGNORECASE),
    re.compile(r"life\s*insurance", re.IGNORECASE),
    re.compile(r"disability\s*insurance", re.IGNORECASE),
    re.compile(r"tuition\s*(?:reimbursement|assistance)", re.IGNORECASE),
    re.compile(r"unlimited\s*pto", re.IGNORECASE),
    re.compile(r"company\s*(?:retreat|offsite|trip)", re.IGNORECASE),
]


# =============================================================================
# Helpers
# =============================================================================

def classify_header(header: str) -> Optional[str]:
    """
    Return the section family for a header, or None.

    Families are tested requirements -> benefits -> team; the first match
    wins and the header belongs to that family only.
    """
    framed = f"\n{header}:\n"
    for family, pattern in HEADER_FAMILIES:
        if pattern.search(framed):
            return family
    return None


def extract_bullets(section: str) -> list[str]:
    """Bullet / numbered-list lines with their markers removed (5 < len < 500)."""
    bullets = []
    for raw in section.split("\n"):
        line = raw.strip()
        if not line or not BULLET_MARKER.match(line):
            continue
        content = BULLET_PREFIX.sub("", line).strip()
        if 5 < len(content) < 500:
            bullets.append(content)
    return bullets


def _section_lines(section: str) -> list[str]:
    lines = [line.strip() for line in section.split("\n")]
    return [line for line in lines if 10 < len(line) < 500][:MAX_SECTION_LINES]


def split_sections(text: str) -> list[tuple[str, str]]:
    """
    Split text into (header, body) pairs.

    Text before the first header is returned with an empty header.
    """
    matches = list(HEADER_LINE.finditer(text))
    if not matches:
        return [("", text)]

    sections = []
    if matches[0].start() > 0:
        sections.append(("", text[:matches[0].start()]))

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        header = match.group(0).strip()
        header = re.sub(r"^#+\s*", "", header)
        header = re.sub(r"[:：]\s*$", "", header).strip()
        sections.append((header, text[match.end():end]))

    return sections


def _render_team_size(match: re.Match, kind: str) -> str:
    if kind == "range":
        return f"{match.group(1)}-{match.group(2)}"
    if kind == "minimum":
        return f"{match.group(1)}+"
    if kind == "qualitative":
        return f"{match.group(1).lower()} team"
    return match.group(1)


def find_team_size(text: str) -> Optional[str]:
    """First team-size pattern that matches, rendered as "5-10", "20+", "small team" or "8"."""
    for pattern, kind in TEAM_SIZE_PATTERNS:
        match = pattern.search(text)
        if match:
            return _render_team_size(match, kind)
    return None


def find_salary(text: str) -> Optional[str]:
    """Earliest pattern family wins; returns the exact matched substring."""
    for pattern in SALARY_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def find_tech_stack(text: str) -> list[str]:
    found: dict[str, str] = {}
    for match in TECH_REGEX.finditer(text):
        lower = match.group(1).lower()
        canonical = TECH_KEYWORD_CANONICAL.get(lower)
        if canonical and lower not in found:
            found[lower] = canonical
    return list(found.values())


def find_culture(text: str) -> list[str]:
    found: list[str] = []
    for canonical, pattern in CULTURE_REGEXES:
        if canonical not in found and pattern.search(text):
            found.append(canonical)
    return found


def _scan_lines(text: str, patterns: list[re.Pattern], min_length: int) -> list[str]:
    results: list[str] = []
    for raw in text.split("\n"):
        if len(results) >= MAX_KEYWORD_FALLBACK:
            break
        line = raw.strip()
        if not (min_length < len(line) < 500):
            continue
        if any(pattern.search(line) for pattern in patterns):
            results.append(LEADING_BULLET.sub("", line).strip())
    return results


def extract_requirements_by_keyword(text: str) -> list[str]:
    return _scan_lines(text, REQUIREMENT_LINE_PATTERNS, min_length=10)


def extract_benefits_by_keyword(text: str) -> list[str]:
    return _scan_lines(text, BENEFIT_LINE_PATTERNS, min_length=5)


# =============================================================================
# Main parser
# =============================================================================

def parse_job_description(description: Optional[str]) -> ParsedJobData:
    """
    Extract requirements, benefits, team size, culture, salary and tech stack.

    Never raises: empty or non-string input yields an empty result.

    Args:
        description: Raw description (HTML or plain text)

    Returns:
        ParsedJobData with capped lists
    """
    result = ParsedJobData()

    if not isinstance(description, str) or not description.strip():
        return result

    text = html_to_text(description)

    # 1. Section-based extraction
    for header, body in split_sections(text):
        if not header:
            continue

        family = classify_header(header)
        if family == SECTION_REQUIREMENTS:
            result.requirements.extend(extract_bullets(body) or _section_lines(body))
        elif family == SECTION_BENEFITS:
            result.benefits.extend(extract_bullets(body) or _section_lines(body))
        elif family == SECTION_TEAM and result.team_size is None:
            result.team_size = find_team_size(body)

    # 2. Keyword-line fallback
    if not result.requirements:
        result.requirements = extract_requirements_by_keyword(text)
    if not result.benefits:
        result.benefits = extract_benefits_by_keyword(text)

    # 3. Salary, tech stack, culture
    result.salary = find_salary(text)
    result.tech_stack = find_tech_stack(text)
    result.culture = find_culture(text)

    # 4. Team size over the whole text
    if result.team_size is None:
        result.team_size = find_team_size(text)

    # 5. Caps
    result.requirements = result.requirements[:MAX_REQUIREMENTS]
    result.benefits = result.benefits[:MAX_BENEFITS]
    result.tech_stack = result.tech_stack[:MAX_TECH_STACK]
    result.culture = result.culture[:MAX_CULTURE]

    return result
