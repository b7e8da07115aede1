import json
from collections.abc import Sequence

from loguru import logger

from app.core.config import settings
from app.models.video import RejectionRecord, Video

_DECODER = json.JSONDecoder()


class CurationSelector:
    """
    Picks exactly ``target`` video ids out of a candidate pool with the help of an LLM.

    The model's answer is only trusted as far as it names real candidates:
    unknown ids are dropped, short answers are padded in candidate order,
    long answers are truncated, and any failure falls back to the first
    ``target`` candidates.
    """

    def __init__(self, oracle, target: int = settings.CURATION_TARGET):
        self.oracle = oracle
        self.target = target

    @staticmethod
    def get_prompt() -> str:
        return """
        You are a YouTube video curator. Your job is to select videos from a
        numbered candidate list that best match a user's stated preferences.

        Rules:
        - Only choose ids that appear in the candidate list.
        - Respect the user's criteria and steer away from anything similar to
          videos they rejected before.
        - Return ONLY a JSON array of video ids, no other text.
        """

    def build_prompt(
        self, candidates: Sequence[Video], criteria: str, rejections: Sequence[RejectionRecord] = ()
    ) -> str:
        listing = "\n".join(
            f'{i}. [{v.id}] "{v.title}" by {v.channel_title} - {v.description or "(no description)"}'
            for i, v in enumerate(candidates, start=1)
        )

        rejection_context = ""
        if rejections:
            rendered = "\n".join(
                f'- "{r.video_id}"' + (f": {r.reason}" if r.reason else "") for r in rejections
            )
            rejection_context = (
                f"\n\nThe user has previously rejected these types of videos:\n{rendered}\n\n"
                "Avoid recommending similar content."
            )

        return (
            f"USER'S CURATION CRITERIA:\n{criteria}{rejection_context}\n\n"
            f"CANDIDATE VIDEOS:\n{listing}\n\n"
            f"Select the {self.target} best videos that match the user's criteria. "
            f"Return ONLY a JSON array of exactly {self.target} video ids, like this:\n"
            '["videoId1", "videoId2", ...]\n\n'
            f"If there are fewer than {self.target} good matches, still return exactly {self.target}."
        )

    @staticmethod
    def parse_response(text: str | None) -> list | None:
        """Return the list embedded in the model answer, or None when there is no usable list."""
        if not text:
            return None
        # first "[" that opens a decodable JSON array wins; trailing prose is ignored
        start = text.find("[")
        while start != -1:
            try:
                parsed, _ = _DECODER.raw_decode(text, start)
            except json.JSONDecodeError:
                start = text.find("[", start + 1)
                continue
            return parsed
        return None

    def finalize(self, ranked: list, candidate_ids: list[str]) -> list[str]:
        """Validate against the candidate set, then pad or truncate to exactly ``target`` ids."""
        allowed = set(candidate_ids)
        chosen: list[str] = []
        used: set[str] = set()
        for vid in ranked:
            if isinstance(vid, str) and vid in allowed and vid not in used:
                chosen.append(vid)
                used.add(vid)

        dropped = len(ranked) - len(chosen)
        if dropped:
            logger.debug(f"Discarded {dropped} ids outside the candidate set or repeated")

        for vid in candidate_ids:
            if len(chosen) >= self.target:
                break
            if vid not in used:
                chosen.append(vid)
                used.add(vid)

        return chosen[: self.target]

    async def select(
        self, candidates: Sequence[Video], criteria: str, rejections: Sequence[RejectionRecord] = ()
    ) -> list[str]:
        candidate_ids = [v.id for v in candidates]
        if len(candidates) <= self.target:
            return candidate_ids

        fallback = candidate_ids[: self.target]
        prompt = self.build_prompt(candidates, criteria, rejections)
        try:
            response = await self.oracle.generate_content_async(
                prompt, system_prompt=self.get_prompt(), temperature=0.7, max_output_tokens=500
            )
        except Exception as e:
            logger.exception(f"Curation oracle failed, using first {self.target} candidates: {e}")
            return fallback

        ranked = self.parse_response(response)
        if ranked is None:
            logger.error(f"Curation oracle did not return a JSON array: {response!r:.200}")
            return fallback

        return self.finalize(ranked, candidate_ids)
