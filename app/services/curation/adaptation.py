from loguru import logger


class CriteriaAdaptation:
    """Rewrites a user's curation criteria to take a rejected video into account."""

    def __init__(self, oracle):
        self.oracle = oracle

    @staticmethod
    def build_prompt(current_criteria: str, rejected_title: str, reason: str | None) -> str:
        reason_part = f' with reason: "{reason}"' if reason else ""
        return (
            f'A user has these video curation preferences:\n"{current_criteria}"\n\n'
            f'They just rejected a video titled "{rejected_title}"{reason_part}.\n\n'
            "Rewrite the curation criteria to incorporate this feedback. "
            "Keep it concise (2-3 sentences max). Return ONLY the updated criteria text, nothing else."
        )

    async def adapt(self, current_criteria: str, rejected_title: str, reason: str | None = None) -> str:
        prompt = self.build_prompt(current_criteria, rejected_title, reason)
        try:
            response = await self.oracle.generate_content_async(prompt, temperature=0.5, max_output_tokens=200)
        except Exception as e:
            logger.exception(f"Criteria rewrite failed, keeping current criteria: {e}")
            return current_criteria

        updated = (response or "").strip().strip('"').strip()
        if not updated:
            logger.warning("Criteria rewrite returned nothing, keeping current criteria")
            return current_criteria
        return updated
