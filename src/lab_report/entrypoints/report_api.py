"""
Lab Report API - read endpoints for the clinic reports screen.
Thin API layer: request parameters go straight to views.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
import logging

import config
from lab_report import views
from lab_report.service_layer.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork

# Configure logging
logging.basicConfig(level=config.get_log_level())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lab Report API",
    description="Lab order test matrix report for the clinic",
    version="1.0.0"
)


class ReportStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    today_patients: int = Field(alias="todayPatients")
    today_tests: int = Field(alias="todayTests")
    today_revenue: float = Field(alias="todayRevenue")
    growth: float


class LabReportRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    visit_number: str = Field(alias="visitNumber")
    ln: str
    title: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    gender: str
    age: Union[int, float, str]
    height: str
    rights: str
    lab_tests: Dict[str, bool] = Field(alias="labTests")


class LabReportResponse(BaseModel):
    stats: ReportStats
    data: List[LabReportRow]


class ReportColumnsResponse(BaseModel):
    version: str
    columns: List[str]


def get_uow() -> AbstractUnitOfWork:
    return SqlAlchemyUnitOfWork()


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "lab-report-api",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/api/reports/data", response_model=LabReportResponse, response_model_by_alias=True)
def get_report_data(
    report_type: str = Query("lab", alias="reportType"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    department: Optional[str] = None,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Lab test matrix report for a date range.

    Args:
        reportType: Only "lab" is served here
        dateFrom: First day (YYYY-MM-DD); defaults to a trailing window
        dateTo: Last day (YYYY-MM-DD)
        department: Department name, or "all"

    Returns:
        Today's stats and one row of test flags per visit
    """
    if report_type != "lab":
        raise HTTPException(status_code=400, detail=f"Unsupported report type: {report_type}")

    try:
        return views.get_lab_report(uow, date_from=date_from, date_to=date_to, department=department)
    except views.ReportGenerationError as e:
        logger.error(f"Error in lab report: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate lab report")


@app.get("/api/reports/lab/columns", response_model=ReportColumnsResponse)
def get_report_columns():
    """Report columns in table order."""
    return views.get_report_columns()


def main():
    """Run the report API with uvicorn."""
    import uvicorn

    port = int(config.get_api_url().rsplit(":", 1)[1])
    uvicorn.run(app, host="0.0.0.0", port=port, log_level=config.get_log_level().lower())


if __name__ == "__main__":
    main()
