"""Configuration errors."""

from typing import List, Optional


class ConfigurationError(Exception):
    """Invalid settings or unusable provider credentials. Never retried.

    ``errors`` lists every individual problem so the CLI can report them in one
    pass; ``variable`` names the environment variable at fault, when there is one.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        variable: Optional[str] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        self.variable = variable
        super().__init__(str(self))

    @classmethod
    def missing_credentials(
        cls, variable: str, purpose: str, suggestions: Optional[List[str]] = None
    ) -> "ConfigurationError":
        """Error for an API key that is unset or blank."""
        return cls(
            f"{purpose} credentials are not configured",
            errors=[f"Missing required environment variable: {variable}"],
            suggestions=suggestions or [f"Set {variable} in .env"],
            variable=variable,
        )

    @classmethod
    def rejected_credentials(cls, variable: str, purpose: str, status_code: int) -> "ConfigurationError":
        """Error for a provider answering 401/403."""
        return cls(
            f"{purpose} rejected the API key (HTTP {status_code})",
            suggestions=[f"Check {variable} in .env"],
            variable=variable,
        )

    def __str__(self) -> str:
        lines = [self.message]
        if self.errors:
            lines.append("\nValidation Errors:")
            lines += [f"  {n}. {error}" for n, error in enumerate(self.errors, 1)]
        if self.suggestions:
            lines.append("\nSuggestions:")
            lines += [f"  - {hint}" for hint in self.suggestions]
        return "\n".join(lines)
