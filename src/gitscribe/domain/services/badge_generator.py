"""shields.io badges for a repository."""

from datetime import datetime, timezone
from urllib.parse import quote

from gitscribe.domain.entities.documentation import GeneratedDocs
from gitscribe.domain.entities.quality import QualityReport
from gitscribe.domain.entities.repository import RepoRef

SHIELDS_URL = "https://img.shields.io/badge"

LANGUAGE_STYLES: dict[str, tuple[str, str]] = {
    "JavaScript": ("F7DF1E", "javascript"),
    "TypeScript": ("3178C6", "typescript"),
    "Python": ("3776AB", "python"),
    "Java": ("ED8B00", "java"),
    "C++": ("00599C", "cplusplus"),
    "Go": ("00ADD8", "go"),
    "Rust": ("000000", "rust"),
    "Ruby": ("CC342D", "ruby"),
    "PHP": ("777BB4", "php"),
    "Swift": ("FA7343", "swift"),
    "Kotlin": ("7F52FF", "kotlin"),
    "Dart": ("0175C2", "dart"),
    "HTML": ("E34F26", "html5"),
    "CSS": ("1572B6", "css3"),
    "Shell": ("89E051", "gnu-bash"),
}


def quality_color(score: int) -> str:
    if score >= 80:
        return "brightgreen"
    if score >= 60:
        return "green"
    if score >= 40:
        return "yellow"
    if score >= 20:
        return "orange"
    return "red"


def _badge(alt: str, label: str, message: str, color: str, logo: str | None = None) -> str:
    url = f"{SHIELDS_URL}/{label}-{message}-{color}?style=for-the-badge"
    if logo:
        url += f"&logo={logo}"
    return f"![{alt}]({url})"


def _days_since(timestamp: str, now: datetime | None = None) -> int | None:
    try:
        pushed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    if pushed.tzinfo is None:
        pushed = pushed.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, (now - pushed).days)


def generate_badges(
    repo: RepoRef,
    quality: QualityReport | None = None,
    docs: GeneratedDocs | None = None,
    now: datetime | None = None,
) -> str:
    """Space-separated markdown badges: quality, docs, language, license, status, activity."""
    badges: list[str] = []

    if quality is not None:
        score = quality.overall_score
        badges.append(_badge("Quality Score", "quality", f"{score}%2F100", quality_color(score)))

    if docs is not None and docs.sections:
        badges.append(_badge("Documentation", "docs", "generated", "success", "readthedocs"))
    else:
        badges.append(_badge("Documentation", "docs", "pending", "yellow", "readthedocs"))

    if repo.language:
        color, logo = LANGUAGE_STYLES.get(repo.language, ("gray", "code"))
        badges.append(_badge("Language", "language", quote(repo.language, safe=""), color, logo))

    badges.append(_badge("License", "license", "MIT", "blue"))

    if repo.private:
        badges.append(_badge("Status", "status", "private", "red"))
    else:
        badges.append(_badge("Status", "status", "public", "green"))

    if repo.last_pushed_at:
        days = _days_since(repo.last_pushed_at, now)
        if days is not None:
            color = "green" if days < 30 else "yellow" if days < 90 else "red"
            badges.append(_badge("Last Updated", "updated", f"{days}%20days%20ago", color))

    return " ".join(badges)
