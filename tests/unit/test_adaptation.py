"""
Unit tests for CriteriaAdaptation.
"""
from app.services.curation.adaptation import CriteriaAdaptation
from tests.conftest import FakeOracle


class TestCriteriaAdaptation:
    async def test_returns_rewritten_criteria(self):
        oracle = FakeOracle(response='  "Prefer science. Avoid celebrity gossip."  ')

        result = await CriteriaAdaptation(oracle).adapt("Prefer science.", "Celebrity Drama Ep. 4", "gossip")

        assert result == "Prefer science. Avoid celebrity gossip."
        prompt = oracle.prompts[0]
        assert '"Prefer science."' in prompt
        assert 'titled "Celebrity Drama Ep. 4" with reason: "gossip"' in prompt
        assert "2-3 sentences" in prompt

    async def test_reason_is_optional(self):
        oracle = FakeOracle(response="New criteria.")

        await CriteriaAdaptation(oracle).adapt("Old.", "Some video")

        assert "with reason" not in oracle.prompts[0]

    async def test_oracle_failure_keeps_current_criteria(self):
        oracle = FakeOracle(error=TimeoutError("slow"))

        assert await CriteriaAdaptation(oracle).adapt("Keep me.", "Title", "meh") == "Keep me."

    async def test_empty_answer_keeps_current_criteria(self):
        oracle = FakeOracle(response="   ")

        assert await CriteriaAdaptation(oracle).adapt("Keep me.", "Title") == "Keep me."
