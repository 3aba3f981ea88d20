"""QR code generator backed by segno."""

from __future__ import annotations

import io

import segno

from app.core.exceptions import CodeGenerationError
from app.interfaces.code_generator import CodeGenerator


class QRCodeGenerator(CodeGenerator):
    """Renders payloads (student ids) as PNG QR codes for check-in scanners."""

    def __init__(self, scale: int = 10, border: int = 2, error: str = "M") -> None:
        self.scale = scale
        self.border = border
        self.error = error

    def generate(self, payload: str) -> bytes:
        if not payload:
            raise CodeGenerationError("Cannot encode an empty payload.")
        try:
            qr = segno.make_qr(payload, error=self.error)
            buf = io.BytesIO()
            qr.save(buf, kind="png", scale=self.scale, border=self.border)
        except (segno.DataOverflowError, ValueError) as exc:
            raise CodeGenerationError(f"QR generation failed: {exc}") from exc
        return buf.getvalue()
