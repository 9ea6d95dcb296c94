"""Approximate token accounting."""

from llm_hub_server.models import Usage

CHARS_PER_TOKEN = 4


class ApproximateTokenCounter:
    """Character-based token estimate.

    Roughly four characters per token for English text. This never calls a
    tokenizer, so it cannot fail or block; counts are only indicative.
    """

    def __init__(self, chars_per_token: int = CHARS_PER_TOKEN) -> None:
        self.chars_per_token = chars_per_token

    def count(self, text: str | None) -> int:
        """Estimate token count.

        Args:
            text: Input text

        Returns:
            Estimated token count
        """
        if not text:
            return 0
        return len(text) // self.chars_per_token

    def usage(self, prompt: str, completion: str) -> Usage:
        """Build a usage block for a prompt/completion pair.

        Each side is estimated on its own; the total is their sum.
        """
        prompt_tokens = self.count(prompt)
        completion_tokens = self.count(completion)
        return Usage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


def get_counter() -> ApproximateTokenCounter:
    """Get token counter instance."""
    return ApproximateTokenCounter()
