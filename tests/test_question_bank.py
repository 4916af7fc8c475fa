"""Tests for the question bank catalog."""

import pytest

from interview_practice.engine.question_bank import QUESTION_BANK_VERSION, QuestionBank
from interview_practice.models.enums import DifficultyTier, QuestionCategory
from interview_practice.utils.exceptions import ConfigurationError


class TestCatalog:
    """Industry and position lookups."""

    def test_industries_and_positions(self, question_bank):
        assert "Technology" in question_bank.industries()
        assert "Software Developer" in question_bank.positions_for("Technology")

    def test_positions_lookup_is_case_insensitive(self, question_bank):
        assert question_bank.positions_for("technology") == question_bank.positions_for("Technology")

    def test_unknown_industry_has_no_positions(self, question_bank):
        assert question_bank.positions_for("Aerospace") == []

    def test_supports(self, question_bank):
        assert question_bank.supports("Technology", "software developer")
        assert not question_bank.supports("Technology", "Nurse")

    def test_version(self, question_bank):
        assert question_bank.version == QUESTION_BANK_VERSION


class TestTemplatesFor:
    """Pool lookups for a session context."""

    def test_entry_pools_keep_declared_order(self, question_bank):
        pools = question_bank.templates_for("Technology", "Software Developer", DifficultyTier.ENTRY)
        assert [len(pools[c]) for c in QuestionCategory] == [3, 2, 2]
        assert pools[QuestionCategory.BEHAVIORAL][0].text.startswith("Tell me about yourself")
        assert all(q.category == QuestionCategory.TECHNICAL for q in pools[QuestionCategory.TECHNICAL])

    def test_accepts_tier_name(self, question_bank):
        pools = question_bank.templates_for("Technology", "Software Developer", "senior")
        assert len(pools[QuestionCategory.BEHAVIORAL]) == 2

    @pytest.mark.parametrize("industry, position, tier", [
        ("Aerospace", "Pilot", "entry"),
        ("Technology", "Nurse", "entry"),
        ("Technology", "Software Developer", "principal"),
    ])
    def test_unknown_combination_gives_empty_pools(self, question_bank, industry, position, tier):
        pools = question_bank.templates_for(industry, position, tier)
        assert all(len(pool) == 0 for pool in pools.values())


class TestCustomBank:
    """Banks built from mappings and YAML documents."""

    def test_dict_entries(self):
        bank = QuestionBank(
            questions={"entry": {"behavioral": [{"text": "Why us?", "tips": ["Research the company"]}]}},
            industry_positions={"Retail": ["Cashier"]},
            version="custom-1",
        )
        pools = bank.templates_for("Retail", "Cashier", "entry")
        assert pools[QuestionCategory.BEHAVIORAL][0].tips == ("Research the company",)
        assert pools[QuestionCategory.TECHNICAL] == ()

    def test_unknown_category_rejected(self):
        with pytest.raises(ConfigurationError):
            QuestionBank(questions={"entry": {"trivia": [("Q?", ())]}})

    def test_unknown_tier_rejected(self):
        with pytest.raises(ConfigurationError):
            QuestionBank(questions={"guru": {"behavioral": [("Q?", ())]}})

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "bank.yaml"
        path.write_text(
            "version: '2025.2'\n"
            "industries:\n"
            "  Retail: [Cashier]\n"
            "questions:\n"
            "  entry:\n"
            "    technical:\n"
            "      - text: How do you balance a till?\n"
            "        tips: [Be precise]\n",
            encoding="utf-8",
        )
        bank = QuestionBank.from_yaml(path)
        assert bank.version == "2025.2"
        assert bank.industries() == ["Retail"]
        assert bank.templates_for("Retail", "Cashier", "entry")[QuestionCategory.TECHNICAL][0].text \
            == "How do you balance a till?"

    def test_from_yaml_without_questions(self, tmp_path):
        path = tmp_path / "bank.yaml"
        path.write_text("version: 1\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            QuestionBank.from_yaml(path)

    def test_from_missing_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError):
            QuestionBank.from_yaml(tmp_path / "missing.yaml")
