import io
import json
from datetime import datetime, timezone
from typing import List, Tuple

import pandas as pd
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table
from structlog import get_logger

logger = get_logger()

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "pdf": "application/pdf",
}

PDF_COLUMNS = ["id", "title", "location", "type", "status", "price", "bedrooms", "bathrooms"]

def export_filename(fmt: str) -> str:
    day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return f"properties_export_{day}.{fmt}"

def _flatten(properties: List[dict]) -> pd.DataFrame:
    df = pd.DataFrame(properties)
    for col in df.columns:
        if df[col].map(lambda v: isinstance(v, list)).any():
            df[col] = df[col].map(lambda v: ", ".join(map(str, v)) if isinstance(v, list) else v)
    return df

def export_properties(properties: List[dict], fmt: str = "json") -> Tuple[bytes, str, str]:
    """Serialize a property list. Returns (body, media type, download file name)."""
    if fmt not in MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")

    if fmt == "json":
        body = json.dumps(properties, indent=2).encode("utf-8")
    elif fmt == "csv":
        csv_buffer = io.StringIO()
        _flatten(properties).to_csv(csv_buffer, index=False)
        body = csv_buffer.getvalue().encode("utf-8")
    else:
        pdf_buffer = io.BytesIO()
        doc = SimpleDocTemplate(pdf_buffer, pagesize=landscape(A4))
        rows = [PDF_COLUMNS] + [[str(p.get(c, "")) for c in PDF_COLUMNS] for p in properties]
        if len(rows) == 1:
            rows.append(["No properties"] + [""] * (len(PDF_COLUMNS) - 1))
        doc.build([Table(rows)])
        body = pdf_buffer.getvalue()

    logger.info("Exported properties", format=fmt, count=len(properties))
    return body, MEDIA_TYPES[fmt], export_filename(fmt)
