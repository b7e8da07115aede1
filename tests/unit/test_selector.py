"""
Unit tests for CurationSelector.
"""
import json

from app.models.video import RejectionRecord
from app.services.curation.selector import CurationSelector
from tests.conftest import FakeOracle, make_video


def candidates(n: int):
    return [make_video(f"v{i}", description=f"about v{i}") for i in range(1, n + 1)]


class TestCurationSelector:
    async def test_small_pool_is_returned_verbatim_without_oracle(self):
        oracle = FakeOracle(response='["v3"]')
        pool = candidates(10)

        result = await CurationSelector(oracle, target=10).select(pool, "anything")

        assert result == [v.id for v in pool]
        assert oracle.prompts == []

    async def test_oracle_error_falls_back_to_first_k(self):
        oracle = FakeOracle(error=RuntimeError("network down"))

        result = await CurationSelector(oracle, target=10).select(candidates(15), "criteria")

        assert result == [f"v{i}" for i in range(1, 11)]

    async def test_garbage_response_falls_back_to_first_k(self):
        for response in ["", "I like v3 and v4", "[v3, v4", '["v3", ]', "[1, 2"]:
            oracle = FakeOracle(response=response)
            result = await CurationSelector(oracle, target=10).select(candidates(15), "criteria")
            assert result == [f"v{i}" for i in range(1, 11)], response

    def test_first_decodable_list_wins_over_later_brackets(self):
        assert CurationSelector.parse_response('["v2","v3"] (see [1])') == ["v2", "v3"]
        assert CurationSelector.parse_response('Picks [ranked]:\n```json\n["v5", "v1"]\n```') == ["v5", "v1"]
        assert CurationSelector.parse_response("no list here [") is None

    async def test_short_answer_is_padded_in_input_order(self):
        picked = ["v12", "v7", "v3", "v14", "v9", "v1"]
        oracle = FakeOracle(response=json.dumps(picked))

        result = await CurationSelector(oracle, target=10).select(candidates(15), "criteria")

        assert len(result) == 10
        assert len(set(result)) == 10
        assert result[:6] == picked
        assert result[6:] == ["v2", "v4", "v5", "v6"]

    async def test_invalid_ids_are_discarded_before_padding(self):
        oracle = FakeOracle(response='Here you go: ["v2", "v99", "v3"] enjoy!')

        result = await CurationSelector(oracle, target=10).select(candidates(12), "criteria")

        assert result == ["v2", "v3", "v1", "v4", "v5", "v6", "v7", "v8", "v9", "v10"]
        assert "v99" not in result

    async def test_long_answer_is_truncated_in_returned_order(self):
        picked = [f"v{i}" for i in range(15, 0, -1)]
        oracle = FakeOracle(response=json.dumps(picked))

        result = await CurationSelector(oracle, target=10).select(candidates(15), "criteria")

        assert result == picked[:10]

    async def test_repeated_and_non_string_ids_are_ignored(self):
        oracle = FakeOracle(response='["v5", "v5", 7, null, "v6"]')

        result = await CurationSelector(oracle, target=3).select(candidates(8), "criteria")

        assert result == ["v5", "v6", "v1"]

    async def test_prompt_lists_candidates_and_rejections(self):
        oracle = FakeOracle(response="[]")
        pool = candidates(11)
        pool[0] = make_video("v1", title="No desc", channel_title="Chan")
        rejections = [RejectionRecord(video_id="old1", reason="too loud"), RejectionRecord(video_id="old2")]

        await CurationSelector(oracle, target=10).select(pool, "science please", rejections)

        prompt = oracle.prompts[0]
        assert "science please" in prompt
        assert '1. [v1] "No desc" by Chan - (no description)' in prompt
        assert "11. [v11]" in prompt
        assert '- "old1": too loud' in prompt
        assert '- "old2"' in prompt
        assert "Avoid recommending similar content." in prompt

    async def test_prompt_omits_rejection_section_when_empty(self):
        oracle = FakeOracle(response="[]")

        await CurationSelector(oracle, target=10).select(candidates(11), "criteria", [])

        assert "previously rejected" not in oracle.prompts[0]
