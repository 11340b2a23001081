"""
Vocabulary CSV import.

Expected columns: Word, Meaning/Definition, Urdu Translation, Usage in a
Sentence. The first line is always treated as the header. Each line picks
its own delimiter: ``;`` when the line contains one, ``,`` otherwise.
Fields may be wrapped in double quotes, with ``""`` standing for a literal
quote inside a quoted field.
"""
import logging
from typing import List

from .errors import ValidationError
from .models import VocabularyEntryCreate

logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = 4


def parse_csv_line(line: str) -> List[str]:
    delimiter = ";" if ";" in line else ","
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and line[i + 1 : i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current))
    return fields


def parse_vocabulary_csv(content: str) -> List[VocabularyEntryCreate]:
    """Parses CSV text into entries, reporting every malformed row at once."""
    lines = [line.rstrip("\r") for line in content.strip().split("\n")]
    if len(lines) < 2:
        raise ValidationError(
            "CSV file must contain at least a header row and one data row"
        )

    entries: List[VocabularyEntryCreate] = []
    errors: List[str] = []

    # line_number is 1-indexed and counts the header
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue

        fields = [f.strip() for f in parse_csv_line(line)]
        if len(fields) != EXPECTED_COLUMNS:
            errors.append(
                f"Row {line_number}: Expected {EXPECTED_COLUMNS} columns, "
                f"found {len(fields)}"
            )
            continue
        if not all(fields):
            errors.append(
                f"Row {line_number}: All fields are required "
                "(Word, Meaning, Urdu, Usage)"
            )
            continue

        word, meaning, urdu_translation, usage_example = fields
        entries.append(
            VocabularyEntryCreate(
                word=word,
                meaning=meaning,
                urdu_translation=urdu_translation,
                usage_example=usage_example,
            )
        )

    if errors:
        logger.warning(f"CSV import rejected with {len(errors)} invalid rows")
        raise ValidationError("CSV validation errors:\n" + "\n".join(errors))

    return entries
