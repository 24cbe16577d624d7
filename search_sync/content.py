"""콘텐츠 타입 카탈로그 + 지원 언어 목록"""

from __future__ import annotations

from dataclasses import dataclass

# 지원 언어 (순서 고정: 첫 번째가 primary language)
LANGUAGES: tuple[str, ...] = ("en", "ja", "de", "fr", "cn", "kr")

# 검색 인덱스로 동기화되는 콘텐츠 목록 (1 콘텐츠 = 1 인덱스)
CONTENT_LIST: tuple[str, ...] = (
    "Achievement",
    "Action",
    "Balloon",
    "BNpcName",
    "BuddyEquip",
    "Companion",
    "CraftAction",
    "ENpcResident",
    "Emote",
    "Fate",
    "InstanceContent",
    "Item",
    "Leve",
    "Mount",
    "PlaceName",
    "Quest",
    "Recipe",
    "Status",
    "Title",
    "Weather",
)


@dataclass(frozen=True)
class ContentType:
    """게임 데이터 콘텐츠 타입. 인덱스 이름은 소문자 1:1 매핑."""

    name: str

    @property
    def index_name(self) -> str:
        return self.name.lower()

    def __str__(self) -> str:
        return self.name


def content_types(only: str | None = None) -> list[ContentType]:
    """CONTENT_LIST 순서대로 ContentType 목록 반환. only가 있으면 해당 콘텐츠만."""
    return [ContentType(name) for name in CONTENT_LIST if only is None or name == only]
