"""Binary storage for rendered SOP PDFs (Supabase Storage)."""

from supabase import Client

from app.core.logging import get_logger
from app.db.results import GatewayResult, gateway_call

logger = get_logger(__name__)


def sop_pdf_path(chapter_code: str, document_number: str, version: str) -> str:
    """Object path for a rendered SOP, one file per version."""
    return f"{chapter_code}/{document_number}_v{version}.pdf"


@gateway_call("uploading SOP PDF", "storage")
def upload_sop_pdf(
    supabase: Client, bucket: str, path: str, pdf_bytes: bytes
) -> GatewayResult[str]:
    """Upload (or overwrite) a PDF and return its public URL."""
    bucket_ref = supabase.storage.from_(bucket)
    bucket_ref.upload(
        path=path,
        file=pdf_bytes,
        file_options={"content-type": "application/pdf", "upsert": "true"},
    )
    url = bucket_ref.get_public_url(path)
    logger.info(f"Uploaded SOP PDF to {bucket}/{path} ({len(pdf_bytes)} bytes)")
    return GatewayResult.ok(url)
