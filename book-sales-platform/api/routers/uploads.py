"""
Upload API Endpoints.

CSV sales-export ingestion for one book and platform, the CSV template, and
the list of suggested platforms.
"""

import os
import tempfile
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile

from api.dependencies import CurrentUserId, get_current_user_id
from api.errors import internal_error, parse_uuid
from api.models import PlatformsResponse, SaleResponse, UploadResponse, UploadSummaryResponse
from core.config import get_settings
from domain.errors import EmptyBatchError, InvalidUploadError, OwnershipError
from domain.sale import SUPPORTED_PLATFORMS
from services.ingestion_service import build_template_csv, ingest_csv_file

router = APIRouter()

_COPY_CHUNK_BYTES: int = 64 * 1024


def _is_csv(upload: UploadFile) -> bool:
    filename = (upload.filename or "").lower()
    return upload.content_type == "text/csv" or filename.endswith(".csv")


def _spool_to_disk(upload: UploadFile, max_bytes: int) -> str:
    """
    Copy the upload into a temporary file, enforcing the size limit.

    Returns the temporary file path; the caller owns its deletion.
    """
    fd, path = tempfile.mkstemp(prefix="sales-upload-", suffix=".csv")
    written = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = upload.file.read(_COPY_CHUNK_BYTES)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise HTTPException(status_code=413, detail="CSV file is too large")
                out.write(chunk)
    except BaseException:
        os.unlink(path)
        raise
    return path


@router.post(
    "/upload/csv",
    response_model=UploadResponse,
    response_model_exclude_none=True,
    summary="Upload Sales CSV",
    description="Import a platform sales export for one of the caller's books.",
)
def upload_sales_csv(
    user_id: CurrentUserId,
    csv_file: Optional[UploadFile] = File(None, alias="csvFile"),
    book_id: Optional[str] = Form(None, alias="bookId"),
    platform: Optional[str] = Form(None),
):
    """
    Import sales rows from a CSV export.

    **Process:**
    1. Verifies the book belongs to the caller
    2. Maps each row's columns onto date / units / revenue / royalty
       (e.g. `Date`, `sale_date`, `quantity`, `earnings` are recognized)
    3. Validates every row on its own; invalid rows are reported, not fatal
    4. Commits each valid row immediately (no all-or-nothing rollback)

    **Response:**
    ```json
    {
      "message": "CSV file processed successfully",
      "summary": {"totalRows": 3, "createdSales": 2, "errorCount": 1},
      "sales": [...],
      "errors": ["Row 4: Invalid units: -1 (must be non-negative)"]
    }
    ```

    A file without any valid row is rejected with 400 and the row errors.
    """
    if csv_file is None:
        raise HTTPException(status_code=400, detail="No CSV file uploaded")
    if not book_id or not platform:
        raise HTTPException(status_code=400, detail="Book ID and platform are required")
    if not _is_csv(csv_file):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    book_uuid = parse_uuid(book_id, "bookId")
    path = _spool_to_disk(csv_file, get_settings().max_upload_bytes)

    try:
        result = ingest_csv_file(path, user_id, book_uuid, platform, delete_after=True)
    except OwnershipError:
        raise HTTPException(status_code=404, detail="Book not found")
    except EmptyBatchError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "errors": e.errors},
        )
    except (InvalidUploadError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise internal_error("Failed to process CSV file", e)
    finally:
        # ingest_csv_file removes the file itself; this covers failures before it ran
        if os.path.exists(path):
            os.unlink(path)

    return UploadResponse(
        message="CSV file processed successfully",
        summary=UploadSummaryResponse(
            total_rows=result.total_rows,
            created_sales=result.created_sales,
            error_count=result.error_count,
        ),
        sales=[SaleResponse.from_domain(sale) for sale in result.sales],
        errors=result.errors or None,
    )


@router.get(
    "/upload/template",
    summary="Download CSV Template",
    response_class=Response,
    dependencies=[Depends(get_current_user_id)],
)
def download_template():
    """CSV with the canonical headers `date,units,revenue,royalty` and example rows."""
    return Response(
        content=build_template_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sales_template.csv"'},
    )


@router.get(
    "/upload/platforms",
    response_model=PlatformsResponse,
    summary="Supported Platforms",
    dependencies=[Depends(get_current_user_id)],
)
def list_platforms():
    """Suggested platform labels. Any label of 1-100 characters is accepted."""
    return PlatformsResponse(platforms=list(SUPPORTED_PLATFORMS))
