"""Receipt document model and ready-made receipts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.settings import PrinterSettings


class Align(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class Text:
    """A paragraph, wrapped to the paper width."""
    content: str
    bold: bool = False
    align: Align = Align.LEFT
    double_size: bool = False


@dataclass(frozen=True)
class Columns:
    """One line with a label flush left and a value (usually an amount) flush right."""
    label: str
    value: str
    bold: bool = False


@dataclass(frozen=True)
class Separator:
    char: str = '='

    def __post_init__(self):
        if len(self.char) != 1:
            raise ValueError(f"Separator needs a single character, got {self.char!r}")


@dataclass(frozen=True)
class Feed:
    lines: int = 1


@dataclass(frozen=True)
class Cut:
    pass


@dataclass(frozen=True)
class DrawerKick:
    pass


ReceiptBlock = Union[Text, Columns, Separator, Feed, Cut, DrawerKick]


@dataclass
class ReceiptDocument:
    """Ordered blocks of one receipt.

    Builder methods return the document so calls can be chained::

        doc = (ReceiptDocument()
               .text("ELITE ACAI", bold=True, align=Align.CENTER)
               .separator()
               .columns("Total:", "R$ 15,99", bold=True))
    """
    blocks: List[ReceiptBlock] = field(default_factory=list)

    def add(self, block: ReceiptBlock) -> 'ReceiptDocument':
        self.blocks.append(block)
        return self

    def text(self, content: str, bold: bool = False, align: Align = Align.LEFT,
             double_size: bool = False) -> 'ReceiptDocument':
        return self.add(Text(content, bold=bold, align=align, double_size=double_size))

    def columns(self, label: str, value: str, bold: bool = False) -> 'ReceiptDocument':
        return self.add(Columns(label, value, bold=bold))

    def separator(self, char: str = '=') -> 'ReceiptDocument':
        return self.add(Separator(char))

    def feed(self, lines: int = 1) -> 'ReceiptDocument':
        return self.add(Feed(lines))

    def cut(self) -> 'ReceiptDocument':
        return self.add(Cut())

    def drawer_kick(self) -> 'ReceiptDocument':
        return self.add(DrawerKick())

    def __iter__(self) -> Iterator[ReceiptBlock]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)


Line = Union[str, Tuple[str, str]]


def build_receipt(
    header: Sequence[str],
    lines: Sequence[Line],
    total: Optional[Tuple[str, str]] = None,
    footer: Sequence[str] = (),
    open_drawer: bool = False,
) -> ReceiptDocument:
    """Lay out a flat receipt.

    Args:
        header: Centered lines; the first one is printed bold.
        lines: Body lines. A ``(label, amount)`` pair is printed as columns.
        total: Optional ``(label, amount)`` printed bold after a separator.
        footer: Centered lines after the total.
        open_drawer: Kick the cash drawer after printing.
    """
    doc = ReceiptDocument()
    for i, line in enumerate(header):
        doc.text(line, bold=(i == 0), align=Align.CENTER)
    if header:
        doc.separator('=')

    for line in lines:
        if isinstance(line, tuple):
            doc.columns(*line)
        else:
            doc.text(line)

    if total is not None:
        doc.separator('=')
        doc.columns(total[0], total[1], bold=True)

    if footer:
        doc.separator('-')
        for line in footer:
            doc.text(line, align=Align.CENTER)

    if open_drawer:
        doc.drawer_kick()
    return doc


def build_test_page(settings: 'PrinterSettings', now: Optional[datetime] = None) -> ReceiptDocument:
    """Self-test page listing the printer configuration."""
    now = now or datetime.now()
    return (
        ReceiptDocument()
        .text("PRINTER TEST", bold=True, align=Align.CENTER)
        .text("Automatic printing system", align=Align.CENTER)
        .separator('=')
        .text(f"Date: {now.strftime('%d/%m/%Y')}")
        .text(f"Time: {now.strftime('%H:%M:%S')}")
        .separator('=')
        .text("Printer configuration:")
        .text(f"Paper width: {settings.paper_width}mm")
        .text(f"Characters per line: {settings.characters_per_line}")
        .text(f"Baud rate: {settings.baud_rate}")
        .text(f"Code page: {settings.encoding}")
        .separator('=')
        .text("Test completed successfully!", align=Align.CENTER)
    )
