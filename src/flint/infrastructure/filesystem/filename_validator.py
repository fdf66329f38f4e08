"""Filename quality rules for files written by agents.

Models tend to fall back to names like ``output.md``. Such names are
rejected with guidance so the model retries with a descriptive name.
"""

from flint.core.domain.errors import FilenameValidationError

GENERIC_FILENAMES = frozenset(
    {"output.md", "output-2.md", "result.txt", "file.txt", "untitled.md"}
)

INVALID_CHARACTERS = '<>:"|?*'

GOOD_EXAMPLES = (
    "procurement-request.md",
    "budget-analysis-q3.csv",
    "approval-checklist.md",
    "software-license-quote.md",
)

BAD_EXAMPLES = ("output.md", "result.txt", "untitled.md")


def validate_filename(filename: str) -> None:
    """Validate the basename of an output file.

    Raises:
        FilenameValidationError: With corrective guidance for the model
    """
    if not filename or not filename.strip():
        raise FilenameValidationError(filename, "Filename cannot be empty")

    if any(char in filename for char in INVALID_CHARACTERS):
        raise FilenameValidationError(
            filename,
            f'Filename "{filename}" contains invalid characters. '
            f"Avoid: {' '.join(INVALID_CHARACTERS)}",
        )

    if filename.lower() in GENERIC_FILENAMES:
        raise FilenameValidationError(filename, _generic_name_message(filename))


def _generic_name_message(filename: str) -> str:
    good = "\n".join(f"  - {name}" for name in GOOD_EXAMPLES)
    bad = ", ".join(BAD_EXAMPLES)
    return (
        f'Generic filename "{filename}" not allowed. '
        "Use descriptive names based on content or purpose.\n\n"
        f"Good examples:\n{good}\n\n"
        f"Bad examples: {bad}"
    )
