#!/usr/bin/env python3
"""
DocumentTransformer: 이름 게이트, 필드 제거, 타입 고정, 파생 이름 컬럼

테스트 항목:
  1. primary 이름 게이트
  2. NameCombined (Title 2개 이름 / 일반 1개 이름)
  3. NameLocale 결합 순서
  4. 리스트 필드 제거 (Recipes 유지)
  5. Quest 숫자 범위 필드 제외 (최상위 + PreviousQuest0)
  6. Balloon Dialogue → Name 합성
  7. 타입 고정
"""

from search_sync import LANGUAGES, ContentType, DocumentTransformer
from search_sync.transformer import RangeFieldPattern, build_rules, coerce_value


def test_name_gate():
    """Name_en이 비었거나 없으면 None"""
    t = DocumentTransformer(ContentType("Item"))

    assert t.transform({"ID": "3", "Name_en": ""}) is None
    assert t.transform({"ID": "3"}) is None
    assert t.transform({"ID": "3", "Name_en": None}) is None
    assert t.transform({"ID": "3", "Name_en": "Potion"}) is not None
    print("  이름 게이트: OK")


def test_name_combined_two_names():
    """Title: Name + NameFemale → 'A B', 단일 이름 콘텐츠 → 'A'"""
    title = DocumentTransformer(ContentType("Title"))
    doc = title.transform({"Name_en": "A", "NameFemale_en": "B"})
    assert doc["NameCombined_en"] == "A B"

    item = DocumentTransformer(ContentType("Item"))
    doc = item.transform({"Name_en": "A", "NameFemale_en": "B"})
    assert doc["NameCombined_en"] == "A"

    # 여성형 이름이 없으면 공백이 남지 않음
    doc = title.transform({"Name_en": "A"})
    assert doc["NameCombined_en"] == "A"
    assert doc["NameCombined_ja"] == ""
    print("  NameCombined: 'A B' / 'A'  OK")


def test_name_locale_order():
    """NameLocale = LANGUAGES 순서로 NameCombined를 공백 결합 후 trim"""
    t = DocumentTransformer(ContentType("Item"))
    record = {f"Name_{lang}": f"n-{lang}" for lang in LANGUAGES}
    doc = t.transform(record)
    assert doc["NameLocale"] == " ".join(f"n-{lang}" for lang in LANGUAGES)

    # 중간 언어가 비어 있으면 내부 공백은 유지, 양끝만 trim
    doc = t.transform({"Name_en": "Potion", "Name_de": "Trank"})
    expected = " ".join(doc[f"NameCombined_{lang}"] for lang in LANGUAGES).strip()
    assert doc["NameLocale"] == expected
    assert doc["NameLocale"].startswith("Potion")
    assert doc["NameLocale"].endswith("Trank")
    print(f"  NameLocale: {doc['NameLocale']!r}  OK")


def test_composite_pruning():
    """리스트 필드 제거, Recipes는 유지, 중첩 오브젝트는 유지"""
    t = DocumentTransformer(ContentType("Item"))
    doc = t.transform({
        "Name_en": "Bronze Ingot",
        "GameContentLinks": [1, 2, 3],
        "Recipes": [{"ID": "5", "ClassJobID": "8"}],
        "ItemUICategory": {"ID": "58", "Name_en": "Material"},
    })
    assert "GameContentLinks" not in doc
    assert doc["Recipes"] == [{"ID": 5, "ClassJobID": 8}]
    assert doc["ItemUICategory"]["ID"] == 58
    print("  리스트 제거 + Recipes 유지: OK")


def test_quest_exclusions():
    """Quest: Level{n}/ScriptArg{n}/TextData 등 제외, PreviousQuest0 내부도 제외"""
    t = DocumentTransformer(ContentType("Quest"))
    record = {
        "Name_en": "Close to Home",
        "Level0": "1",
        "Level170Target": "2",
        "Level12TargetID": "3",
        "ScriptInstruction5_en": "X",
        "ScriptInstruction5_cn": "keep",
        "ScriptArg99": "4",
        "TextData_en": "long text",
        "TextData_kr": "long text",
        "Level171": "kept (out of range)",
        "PreviousQuest0": {
            "Name_en": "Prev",
            "Level3": "1",
            "ScriptArg0": "2",
            "ClassJobLevel0": "5",
        },
    }
    doc = t.transform(record)

    for removed in ("Level0", "Level170Target", "Level12TargetID",
                    "ScriptInstruction5_en", "ScriptArg99", "TextData_en", "TextData_kr"):
        assert removed not in doc, removed
    assert doc["ScriptInstruction5_cn"] == "keep"
    assert doc["Level171"] == "kept (out of range)"
    assert doc["PreviousQuest0"] == {"Name_en": "Prev", "ClassJobLevel0": 5}

    # 입력 레코드는 변경되지 않음
    assert "Level0" in record
    assert "Level3" in record["PreviousQuest0"]
    print("  Quest 제외 규칙: OK")


def test_rules_built_once():
    """제외 필드 집합은 콘텐츠 타입별로 미리 계산"""
    rules = build_rules(ContentType("Quest"))
    assert len(rules.excluded_fields) == 171 * 8 + 6
    assert "PreviousQuest0" in rules.excluded_nested
    assert build_rules(ContentType("Item")).excluded_fields == frozenset()

    pattern = RangeFieldPattern(templates=("A{n}", "A{n}B"), start=1, stop=3)
    assert pattern.expand() == {"A1", "A2", "A3", "A1B", "A2B", "A3B"}
    print("  RangeFieldPattern: OK")


def test_balloon_dialogue():
    """Balloon: 레코드 자체의 Name_en으로 게이트 후 Dialogue_{lang} → Name_{lang}"""
    t = DocumentTransformer(ContentType("Balloon"))
    doc = t.transform({"Name_en": "1", "Dialogue_en": "Hello!", "Dialogue_ja": "こんにちは"})
    assert doc["Name_en"] == "Hello!"
    assert doc["NameCombined_ja"] == "こんにちは"
    assert doc["Name_de"] == ""

    # Name_en 없는 레코드는 Dialogue가 있어도 제외
    assert t.transform({"Dialogue_en": "Hi"}) is None
    # 게이트 통과 후 Dialogue가 비어 있으면 빈 이름으로 인덱싱
    doc = t.transform({"Name_en": "1", "Dialogue_en": ""})
    assert doc is not None
    assert doc["Name_en"] == ""
    assert doc["NameLocale"] == ""
    print("  Balloon Dialogue 합성: OK")


def test_strict_types():
    """숫자/불리언 문자열 → 엄격한 타입, 다국어 텍스트 필드는 문자열 유지"""
    assert coerce_value("12") == 12
    assert coerce_value("-3") == -3
    assert coerce_value("1.5") == 1.5
    assert coerce_value("true") is True
    assert coerce_value("False") is False
    assert coerce_value("007") == "007"
    assert coerce_value("abc") == "abc"
    assert coerce_value({"a": ["1", "x"]}) == {"a": [1, "x"]}

    t = DocumentTransformer(ContentType("Item"))
    doc = t.transform({"Name_en": "1234", "Name_de": "42", "LevelItem": "90", "IsUnique": "true"})
    assert doc["Name_en"] == "1234"
    assert doc["Name_de"] == "42"
    assert doc["LevelItem"] == 90
    assert doc["IsUnique"] is True
    assert doc["NameCombined_en"] == "1234"
    print("  타입 고정: OK")


def test_nested_localized_fields_stay_text():
    """중첩 오브젝트 안의 다국어 필드도 문자열 유지 (레코드 간 매핑 타입 일관성)"""
    t = DocumentTransformer(ContentType("Quest"))
    numeric = t.transform({"Name_en": "Q", "PreviousQuest0": {"ID": "65", "Name_en": "1234"}})
    text = t.transform({"Name_en": "Q", "PreviousQuest0": {"ID": "66", "Name_en": "Foo"}})
    assert numeric["PreviousQuest0"] == {"ID": 65, "Name_en": "1234"}
    assert text["PreviousQuest0"]["Name_en"] == "Foo"

    item = DocumentTransformer(ContentType("Item"))
    doc = item.transform({
        "Name_en": "Ingot",
        "Recipes": [{"ID": "5", "Name_en": "42", "ClassJob": {"Name_de": "7", "ID": "8"}}],
    })
    assert doc["Recipes"] == [{"ID": 5, "Name_en": "42", "ClassJob": {"Name_de": "7", "ID": 8}}]
    print("  중첩 다국어 필드 문자열 유지: OK")


if __name__ == "__main__":
    test_name_gate()
    test_name_combined_two_names()
    test_name_locale_order()
    test_composite_pruning()
    test_quest_exclusions()
    test_rules_built_once()
    test_balloon_dialogue()
    test_strict_types()
    test_nested_localized_fields_stay_text()
    print("ALL transformer TESTS PASSED")
