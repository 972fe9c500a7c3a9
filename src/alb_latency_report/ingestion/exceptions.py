"""
Custom exceptions for the ingestion module.

Provides specialized exception classes for handling various error
conditions while fetching and parsing load balancer access logs.
"""


class IngestionError(Exception):
    """
    Base exception for all ingestion-related errors.

    All other ingestion exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ParseError(IngestionError):
    """
    Raised when a log line cannot be turned into a request record.

    Used for untypeable fields (timestamps, numbers) in an otherwise
    well-shaped access log line.

    Attributes:
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Truncate long lines for readability
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        return self.message


class FieldCountMismatchError(ParseError):
    """
    Raised when a log line does not tokenize into a known schema arity.

    Attributes:
        field_count: Number of tokens the line produced
        expected_counts: Arities of the known log format variants
    """

    def __init__(
        self,
        field_count: int,
        expected_counts: tuple[int, ...],
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.field_count = field_count
        self.expected_counts = expected_counts
        expected = " or ".join(str(count) for count in expected_counts)
        super().__init__(
            f"Line has {field_count} fields, expected {expected}",
            line_number=line_number,
            line_content=line_content,
        )


class ProviderNotFoundError(IngestionError):
    """
    Raised when a log source is not registered.

    Attributes:
        provider_name: The name of the missing source
        available_providers: List of registered source names
    """

    def __init__(
        self,
        provider_name: str,
        available_providers: list[str] | None = None,
    ):
        self.provider_name = provider_name
        self.available_providers = available_providers or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with available sources."""
        if self.available_providers:
            available = ", ".join(sorted(self.available_providers))
            return (
                f"Unknown log source: '{self.provider_name}'. "
                f"Available sources: {available}"
            )
        return f"Unknown log source: '{self.provider_name}'. No sources registered."


class SourceFetchError(IngestionError):
    """
    Raised when listing or retrieving a log object fails.

    Attributes:
        key: Object key or prefix that could not be read
        reason: Detailed explanation of the failure
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        reason: str | None = None,
    ):
        self.key = key
        self.reason = reason
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with object context."""
        parts = [self.message]
        if self.key:
            parts.append(f"key='{self.key}'")
        if self.reason:
            parts.append(f"reason: {self.reason}")
        return " - ".join(parts)
