"""Import extra acronyms and exam questions from JSON or YAML files."""
import json
from pathlib import Path

import yaml
from loguru import logger

from secplus_tutor.catalogue import (
    Catalogue, CatalogueError, parse_acronyms, parse_question_bank,
)
from secplus_tutor.models import QuestionBank

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


def read_file_content(file_path: str):
    """Parse a JSON or YAML file into plain Python data."""
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return json.loads(path.read_text())
    elif suffix in (".yaml", ".yml"):
        return yaml.safe_load(path.read_text())
    raise CatalogueError(
        f"Unsupported file type {suffix or '(none)'}; use one of {', '.join(SUPPORTED_SUFFIXES)}"
    )


def detect_content_kind(data) -> str:
    """Return 'questions' or 'acronyms' depending on the document shape."""
    if isinstance(data, dict) and "questions" in data:
        return "questions"
    if isinstance(data, dict) and "acronyms" in data:
        return "acronyms"
    if isinstance(data, list) and data and isinstance(data[0], dict) and "fullName" in data[0]:
        return "acronyms"
    raise CatalogueError("File holds neither a question bank nor an acronym list")


def import_question_bank(file_path: str) -> QuestionBank:
    bank = parse_question_bank(read_file_content(file_path))
    logger.info(f"Imported {len(bank)} questions from {Path(file_path).name}")
    return bank


def import_acronyms(file_path: str) -> Catalogue:
    catalogue = parse_acronyms(read_file_content(file_path))
    logger.info(f"Imported {len(catalogue)} acronyms from {Path(file_path).name}")
    return catalogue


def import_file(file_path: str):
    """Import whichever kind of content the file holds."""
    data = read_file_content(file_path)
    kind = detect_content_kind(data)
    if kind == "questions":
        return kind, parse_question_bank(data)
    return kind, parse_acronyms(data)
