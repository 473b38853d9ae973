"""
corpus.py - Legal document corpus.

Documents are read from a JSON array of objects with the fields
id, title, section, content, url. Without a corpus file the built-in
placeholder sections are used.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Optional

from ..utils.logger import get_logger


logger = get_logger("retrieval.corpus")


@dataclass
class LegalDocument:
    id: str
    title: str
    section: str
    content: str
    url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


PLACEHOLDER_DOCUMENTS: List[LegalDocument] = [
    LegalDocument(
        id="1",
        title="Right to Information Act",
        section="Section 1",
        content=(
            "An Act to provide for setting out the practical regime of right to "
            "information for citizens to secure access to information under the "
            "control of public authorities."
        ),
        url="https://example.com/rti/1",
    ),
    LegalDocument(
        id="2",
        title="Indian Penal Code",
        section="Section 302",
        content=(
            "Whoever commits murder shall be punished with death, or imprisonment "
            "for life, and shall also be liable to fine."
        ),
        url="https://example.com/ipc/302",
    ),
    LegalDocument(
        id="3",
        title="Indian Penal Code",
        section="Section 420",
        content=(
            "Whoever cheats and thereby dishonestly induces the person deceived to "
            "deliver any property to any person shall be punished with imprisonment "
            "of either description for a term which may extend to seven years, and "
            "shall also be liable to fine."
        ),
        url="https://example.com/ipc/420",
    ),
    LegalDocument(
        id="4",
        title="Hindu Marriage Act",
        section="Section 13",
        content=(
            "Any marriage may, on a petition presented by either the husband or the "
            "wife, be dissolved by a decree of divorce on the ground that the other "
            "party has treated the petitioner with cruelty or has deserted the "
            "petitioner for a continuous period of not less than two years."
        ),
        url="https://example.com/hma/13",
    ),
    LegalDocument(
        id="5",
        title="Consumer Protection Act",
        section="Section 35",
        content=(
            "A complaint in relation to any goods sold or any service provided may "
            "be filed with a District Commission by the consumer to whom such goods "
            "are sold or service provided, alleging a defect or unfair trade practice."
        ),
        url="https://example.com/cpa/35",
    ),
    LegalDocument(
        id="6",
        title="Transfer of Property Act",
        section="Section 54",
        content=(
            "Sale is a transfer of ownership in exchange for a price paid or promised. "
            "Such transfer, in the case of tangible immovable property of the value of "
            "one hundred rupees and upwards, can be made only by a registered instrument."
        ),
        url="https://example.com/tpa/54",
    ),
]


def load_documents(path: Optional[str] = None) -> List[LegalDocument]:
    """
    Load the legal corpus.

    Args:
        path: JSON file holding a list of document objects.

    Returns:
        Parsed documents, or the placeholder corpus when no file is available.
    """
    if not path or not Path(path).exists():
        logger.warning("Legal database not available, using placeholder documents")
        return list(PLACEHOLDER_DOCUMENTS)

    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    documents = [
        LegalDocument(
            id=str(item["id"]),
            title=item["title"],
            section=item.get("section", ""),
            content=item["content"],
            url=item.get("url", ""),
        )
        for item in raw
    ]
    logger.info(f"Loaded {len(documents)} legal documents from {path}")
    return documents
