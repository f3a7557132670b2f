"""Rule-based repository quality scoring.

Each metric scores 0-100 from the root listing (plus files found in test
directories). The overall score is the weighted sum, clamped to 0-100.
"""

import re

from gitscribe.domain.entities.quality import QualityMetric, QualityReport
from gitscribe.domain.entities.repository import RepoAnalysis
from gitscribe.domain.ports.github import ContentItem

TEST_DIR_NAMES = ("tests", "test", "__tests__", "spec")

_TEST_FILE_RE = re.compile(r"((test|spec)\.(js|ts|jsx|tsx|py|java|go|rs)$)|(^|/)test_[^/]+\.py$", re.IGNORECASE)
_ROOT_CONFIG_RE = re.compile(
    r"^(package\.json|tsconfig\.json|pyproject\.toml|\.gitignore|\.eslintrc|\.prettierrc)", re.IGNORECASE
)
_CI_NAMES = (".github", ".gitlab-ci.yml", ".travis.yml", ".circleci", "jenkinsfile", "azure-pipelines.yml")
_TEST_CONFIG_RE = re.compile(
    r"((jest|mocha|pytest|junit|vitest)\.config)|^(pytest\.ini|tox\.ini|conftest\.py|noxfile\.py)$",
    re.IGNORECASE,
)
_TYPED_RE = re.compile(r"(tsconfig|\.tsx?$|^py\.typed$|^mypy\.ini$)", re.IGNORECASE)

CONFIG_RULES: list[tuple[re.Pattern[str], int]] = [
    (re.compile(r"^\.gitignore$"), 20),
    (re.compile(r"^(package\.json|requirements\.txt|pyproject\.toml|pom\.xml|build\.gradle|cargo\.toml|go\.mod)$"), 20),
    (re.compile(r"^(tsconfig|jsconfig|webpack|vite|rollup|setup)\."), 15),
    (re.compile(r"^(\.eslintrc|\.prettierrc|\.editorconfig|\.pre-commit-config\.yaml|ruff\.toml)"), 15),
    (re.compile(r"^(dockerfile|docker-compose|\.dockerignore)"), 10),
    (re.compile(r"^(\.env\.example|\.env\.template)$"), 10),
    (re.compile(r"^\.github$"), 10),
]

# (id, label, weight, description)
METRICS: tuple[tuple[str, str, float, str], ...] = (
    ("readme", "README Quality", 0.15, "Presence and quality of README documentation"),
    ("organization", "Code Organization", 0.20, "Folder structure and file organization"),
    ("testing", "Testing", 0.15, "Test files and CI/CD setup"),
    ("documentation", "Documentation", 0.15, "Overall documentation coverage"),
    ("configuration", "Configuration", 0.10, "Presence of essential config files"),
    ("license", "License & Legal", 0.10, "License file and legal compliance"),
    ("code-quality", "Code Quality", 0.15, "Code structure and best practices"),
)


def _names(items: list[ContentItem], kind: str | None = None) -> list[str]:
    return [i.name.lower() for i in items if kind is None or i.type == kind]


def score_readme(root: list[ContentItem]) -> int:
    readme = next((i for i in root if i.type == "file" and i.name.lower().startswith("readme")), None)
    if readme is None:
        return 0
    size = readme.size or 0
    score = 20
    for threshold in (500, 2000, 5000, 10000):
        if size > threshold:
            score += 20
    return min(100, score)


def score_organization(root: list[ContentItem]) -> int:
    dirs = _names(root, "dir")
    files = [i.name for i in root if i.type == "file"]
    score = 0
    if "src" in dirs:
        score += 25
    if "lib" in dirs or "libs" in dirs:
        score += 15
    if any("test" in d for d in dirs):
        score += 20
    if any("doc" in d for d in dirs):
        score += 15
    if len(files) < 10:
        score += 15
    elif len(files) < 20:
        score += 10
    if any(_ROOT_CONFIG_RE.match(f) for f in files):
        score += 10
    return min(100, score)


def score_testing(root: list[ContentItem], test_paths: list[str]) -> int:
    paths = [i.path for i in root if i.type == "file"] + list(test_paths)
    names = _names(root)
    score = 0
    if any(_TEST_FILE_RE.search(p) for p in paths):
        score += 40
    if any(n in _CI_NAMES for n in names):
        score += 30
    if any(_TEST_CONFIG_RE.search(n) for n in names):
        score += 30
    return min(100, score)


def score_documentation(root: list[ContentItem]) -> int:
    names = _names(root)
    score = 0
    if any(n.startswith("readme") for n in names):
        score += 30
    if any("doc" in d for d in _names(root, "dir")):
        score += 25
    for prefix in ("contributing", "license", "changelog"):
        if any(n.startswith(prefix) for n in names):
            score += 15
    return min(100, score)


def score_configuration(root: list[ContentItem]) -> int:
    names = _names(root)
    score = sum(points for pattern, points in CONFIG_RULES if any(pattern.match(n) for n in names))
    return min(100, score)


def score_license(root: list[ContentItem]) -> int:
    return 100 if any(n.startswith(("license", "licence", "copying")) for n in _names(root, "file")) else 0


def score_code_quality(root: list[ContentItem], analysis: RepoAnalysis | None) -> int:
    score = 50
    if analysis is not None:
        if analysis.complexity == "simple":
            score += 20
        elif analysis.complexity == "moderate":
            score += 10
        if analysis.tech_stack:
            score += 15
        if len(analysis.key_features) > 3:
            score += 15
    if any(_TYPED_RE.search(n) for n in _names(root)):
        score += 20
    return min(100, score)


def score_repository(
    repo_name: str,
    root: list[ContentItem],
    test_paths: list[str] | None = None,
    analysis: RepoAnalysis | None = None,
) -> QualityReport:
    """Score all metrics and combine them into a QualityReport."""
    scores = {
        "readme": score_readme(root),
        "organization": score_organization(root),
        "testing": score_testing(root, test_paths or []),
        "documentation": score_documentation(root),
        "configuration": score_configuration(root),
        "license": score_license(root),
        "code-quality": score_code_quality(root, analysis),
    }
    metrics = [
        QualityMetric(id=mid, label=label, score=scores[mid], weight=weight, description=desc)
        for mid, label, weight, desc in METRICS
    ]
    overall = round(sum(m.score * m.weight for m in metrics))
    return QualityReport(
        repo_name=repo_name,
        overall_score=max(0, min(100, overall)),
        metrics=metrics,
    )
