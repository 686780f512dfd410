"""
Heuristic document profiling: document type and language.

Used when the processing backend does not report a document type.
"""

import re
from loguru import logger

from ..models.entities import DocumentType

# (phrase, weight) cues per document type
TYPE_CUES: dict[DocumentType, tuple[tuple[str, int], ...]] = {
    DocumentType.INVOICE: (
        ("commercial invoice", 5), ("tax invoice", 4), ("invoice number", 3),
        ("invoice no", 3), ("invoice #", 3), ("invoice", 2), ("amount due", 2),
        ("buyer", 1), ("seller", 1), ("gstin", 1),
    ),
    DocumentType.BOE: (
        ("bill of entry", 6), ("boe", 3), ("customs", 2), ("assessable value", 3),
        ("duty", 2), ("declaration", 1), ("importer", 1), ("iec", 1),
    ),
    DocumentType.PACKING_LIST: (
        ("packing list", 6), ("gross weight", 2), ("net weight", 2),
        ("carton", 2), ("packages", 1), ("qty", 1), ("quantity", 1),
    ),
    DocumentType.CERTIFICATE: (
        ("certificate of origin", 6), ("certificate", 3), ("certify", 2),
        ("certified", 1), ("chamber of commerce", 2),
    ),
    DocumentType.SHIPPING_BILL: (
        ("shipping bill", 6), ("let export order", 4), ("drawback", 2),
        ("exporter", 1), ("port of loading", 1),
    ),
}

MIN_CLASSIFICATION_SCORE = 3


def classify_document_type(text: str | None) -> DocumentType:
    """
    Classify a document from its extracted text using weighted keyword cues.

    The highest-scoring type wins if it reaches MIN_CLASSIFICATION_SCORE;
    ties and weak evidence yield "other".
    """
    if not text:
        return DocumentType.OTHER

    t = text.lower()
    scores = {
        doc_type: sum(weight for phrase, weight in cues if phrase in t)
        for doc_type, cues in TYPE_CUES.items()
    }
    best = max(scores, key=scores.get)
    ranked = sorted(scores.values(), reverse=True)

    logger.debug("Document type scoring", scores={k.value: v for k, v in scores.items()})

    if ranked[0] < MIN_CLASSIFICATION_SCORE or ranked[0] == ranked[1]:
        return DocumentType.OTHER
    return best


_SCRIPTS = (
    ("ru", re.compile(r"[а-яё]", re.IGNORECASE)),
    ("zh", re.compile(r"[一-龯]")),
    ("ja", re.compile(r"[あ-ん]")),
    ("ko", re.compile(r"[가-힣]")),
)


def detect_language(text: str | None) -> str:
    """Language by script; defaults to English"""
    for code, pattern in _SCRIPTS:
        if text and pattern.search(text):
            return code
    return "en"
