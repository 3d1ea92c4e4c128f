from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from folio_receipts.modules.extraction.parsers import consum, dia, mercadona
from folio_receipts.modules.extraction.parsers.common import ParsedReceipt


@dataclass(frozen=True)
class ReceiptParser:
    id: str
    can_parse: Callable[[str], bool]
    try_parse: Callable[..., ParsedReceipt | None]


PARSERS: tuple[ReceiptParser, ...] = (
    ReceiptParser(mercadona.PARSER_ID, mercadona.can_parse, mercadona.try_parse),
    ReceiptParser(dia.PARSER_ID, dia.can_parse, dia.try_parse),
    ReceiptParser(consum.PARSER_ID, consum.can_parse, consum.try_parse),
)


def detect_parser(text: str) -> ReceiptParser | None:
    for parser in PARSERS:
        if parser.can_parse(text):
            return parser
    return None
