"""
레코드 → ES 도큐먼트 변환

처리 순서 (transform):
  1. 이름 게이트     : primary language 이름이 비어 있으면 None (인덱싱 제외)
  2. 이름 합성       : Balloon: Dialogue_{lang} → Name_{lang}
  3. 리스트 필드 제거: ES는 가변 길이 중첩 배열을 지원하지 않음 (Recipes 제외)
  4. 콘텐츠별 제외   : 숫자 범위 패턴 필드 (Quest: Level{n}, ScriptArg{n} ...)
  5. 타입 고정       : 숫자 문자열 → int/float, "true"/"false" → bool
  6. 파생 필드       : NameCombined_{lang}, NameLocale

제외 필드 집합은 콘텐츠 타입별로 생성 시 1회만 계산한다.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .content import LANGUAGES, ContentType
from .source import Record, Value

# 리스트여도 유지하는 필드
COMPOSITE_ALLOW_LIST = frozenset({"Recipes"})

_INT_RE = re.compile(r"^-?(0|[1-9][0-9]*)$")
_FLOAT_RE = re.compile(r"^-?(0|[1-9][0-9]*)\.[0-9]+$")


@dataclass(frozen=True)
class RangeFieldPattern:
    """`Level{n}Target` 같은 필드명 템플릿 × n ∈ [start, stop]"""

    templates: tuple[str, ...]
    start: int = 0
    stop: int = 170  # inclusive

    def expand(self) -> frozenset[str]:
        return frozenset(
            t.format(n=n) for t in self.templates for n in range(self.start, self.stop + 1)
        )


@dataclass(frozen=True)
class ContentRules:
    """콘텐츠 타입별 변환 규칙 (선언적)."""

    second_name_field: str | None = None   # 예: Title의 NameFemale
    name_source_field: str | None = None   # 예: Balloon의 Dialogue
    excluded_fields: frozenset[str] = frozenset()
    excluded_nested: dict[str, frozenset[str]] = field(default_factory=dict)


# Quest: 스크립트/레벨 관련 필드는 수백 개라 검색 인덱스에서 제외
_QUEST_RANGE = RangeFieldPattern(
    templates=(
        "Level{n}",
        "Level{n}Target",
        "Level{n}TargetID",
        "ScriptInstruction{n}_en",
        "ScriptInstruction{n}_de",
        "ScriptInstruction{n}_fr",
        "ScriptInstruction{n}_ja",
        "ScriptArg{n}",
    ),
)


def _quest_rules() -> ContentRules:
    range_fields = _QUEST_RANGE.expand()
    text_data = frozenset(
        f"TextData_{lang}" for lang in ("en", "de", "fr", "ja", "kr", "cn")
    )
    return ContentRules(
        excluded_fields=range_fields | text_data,
        excluded_nested={"PreviousQuest0": range_fields},
    )


def build_rules(content: ContentType) -> ContentRules:
    if content.name == "Quest":
        return _quest_rules()
    if content.name == "Title":
        return ContentRules(second_name_field="NameFemale")
    if content.name == "Balloon":
        return ContentRules(name_source_field="Dialogue")
    return ContentRules()


def _text(value: Value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def coerce_value(value: Value) -> Value:
    """캐시에 문자열로 저장된 스칼라를 엄격한 타입으로 변환 (재귀)."""
    if isinstance(value, str):
        if _INT_RE.match(value):
            return int(value)
        if _FLOAT_RE.match(value):
            return float(value)
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return value
    if isinstance(value, dict):
        return {k: coerce_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [coerce_value(v) for v in value]
    return value


class DocumentTransformer:
    """콘텐츠 타입 하나에 대한 순수 변환기."""

    def __init__(
        self,
        content: ContentType,
        languages: tuple[str, ...] = LANGUAGES,
        allow_list: frozenset[str] = COMPOSITE_ALLOW_LIST,
    ):
        self.content = content
        self.languages = languages
        self.allow_list = allow_list
        self.rules = build_rules(content)
        self._text_suffixes = tuple(f"_{lang}" for lang in languages)

    @property
    def primary_name_field(self) -> str:
        return f"Name_{self.languages[0]}"

    def transform(self, record: Record) -> dict[str, Value] | None:
        """레코드 → 도큐먼트. primary 이름이 비어 있으면 None."""
        if not record.get(self.primary_name_field):
            return None

        doc = dict(record)
        if self.rules.name_source_field:
            for lang in self.languages:
                doc[f"Name_{lang}"] = doc.get(f"{self.rules.name_source_field}_{lang}") or ""

        doc = {
            k: v for k, v in doc.items()
            if not (isinstance(v, list) and k not in self.allow_list)
            and k not in self.rules.excluded_fields
        }

        for parent, excluded in self.rules.excluded_nested.items():
            nested = doc.get(parent)
            if isinstance(nested, dict):
                doc[parent] = {k: v for k, v in nested.items() if k not in excluded}

        doc = {k: self._coerce_field(k, v) for k, v in doc.items()}

        self._add_name_columns(doc)
        return doc

    def _coerce_field(self, name: str, value: Value) -> Value:
        # 다국어 텍스트 필드는 문자열 유지 (숫자 이름 "1234" 등)
        if name.endswith(self._text_suffixes):
            return value
        if isinstance(value, dict):
            return {k: self._coerce_field(k, v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._coerce_field(name, v) for v in value]
        return coerce_value(value)

    def _add_name_columns(self, doc: dict[str, Value]):
        """
        NameCombined_{lang}: 이름이 2개인 콘텐츠 (Title: Name + NameFemale) 결합
        NameLocale:          모든 언어 이름을 하나의 컬럼으로: 다국어 동시 검색용
        """
        second = self.rules.second_name_field
        for lang in self.languages:
            combined = _text(doc.get(f"Name_{lang}"))
            if second:
                combined += " " + _text(doc.get(f"{second}_{lang}"))
            doc[f"NameCombined_{lang}"] = combined.strip()

        doc["NameLocale"] = " ".join(
            doc[f"NameCombined_{lang}"] for lang in self.languages
        ).strip()
