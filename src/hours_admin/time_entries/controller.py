from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
from flask import Flask, flash, jsonify, render_template, request, send_file, url_for

from ..common.web import admin_required, current_user, login_required
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    TransactionConflictError,
    ValidationError,
)
from ..container import Container
from .listing import FILTER_COLUMNS, SORT_COLUMNS, HoursListing, assistant_id_from_url
from .model import AggregatedTimeEntry, TimeEntry, TimeEntryPage
from .service import HoursQuery

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Date", "Assistant", "Company", "Description", "Hours"]

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (TransactionConflictError, 409),
)


def entry_to_json(entry: TimeEntry) -> Dict[str, Any]:
    return {
        "id": entry.entry_id,
        "harvestId": entry.harvest_id,
        "harvestUserId": entry.harvest_user_id,
        "harvestClientId": entry.harvest_client_id,
        "assistantId": entry.assistant_id,
        "companyId": entry.company_id,
        "spentDate": entry.spent_date.isoformat(),
        "hoursTracked": entry.hours_tracked,
        "taskName": entry.task_name,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
        "assistant": (
            {
                "id": entry.assistant.assistant_id,
                "firstName": entry.assistant.first_name,
                "lastName": entry.assistant.last_name,
                "imageUrl": entry.assistant.image_url,
            }
            if entry.assistant
            else None
        ),
        "company": (
            {"id": entry.company.company_id, "name": entry.company.name} if entry.company else None
        ),
    }


def aggregated_to_json(row: AggregatedTimeEntry) -> Dict[str, Any]:
    return {
        "assistantId": row.assistant_id,
        "companyId": row.company_id,
        "firstName": row.first_name,
        "lastName": row.last_name,
        "companyName": row.company_name,
        "imageUrl": row.image_url,
        "hoursTracked": row.hours_tracked,
    }


def page_to_json(page: TimeEntryPage) -> Dict[str, Any]:
    return {
        "data": {
            "timeEntries": [entry_to_json(e) for e in page.entries],
            "count": page.count,
            "totalHoursTracked": page.total_hours_tracked,
        }
    }


def register(app: Flask, container: Container) -> None:
    def _json_error(exc: Exception):
        for error_cls, status in _STATUS_BY_ERROR:
            if isinstance(exc, error_cls):
                return jsonify({"error": str(exc)}), status
        logger.exception("Unexpected error on %s", request.path)
        return jsonify({"error": "Internal server error"}), 500

    def _listing_query(listing: HoursListing, assistant_id: Optional[int]) -> HoursQuery:
        return HoursQuery.from_args(listing.to_request_params(assistant_id=assistant_id))

    def _export_query() -> HoursQuery:
        return _listing_query(HoursListing.from_url_args(request.args), assistant_id_from_url(request.args))

    def _write_export_csv(*, rows: List[Dict[str, Any]], filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _write_export_xlsx(*, rows: List[Dict[str, Any]], filename: str):
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Hours")

        output.seek(0)
        return send_file(
            output,
            download_name=filename,
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    @app.route("/hours", methods=["GET"], endpoint="hours")
    @login_required
    def hours():
        listing = HoursListing()
        assistant_id: Optional[int] = None
        result = None
        error = None

        try:
            listing = HoursListing.from_url_args(request.args)
            assistant_id = assistant_id_from_url(request.args)
            query = _listing_query(listing, assistant_id)
            result = container.time_entry_service.list_hours(current_user=current_user(), query=query)
        except (ValidationError, AuthorizationError) as e:
            error = str(e)
            flash(error, "danger")
        except Exception:
            logger.exception("Failed to load hours")
            error = "System error while loading hours"
            flash(error, "danger")

        def listing_url(endpoint: str, state: HoursListing) -> str:
            args = state.to_url_args()
            if assistant_id is not None:
                args["assistantId"] = assistant_id
            return url_for(endpoint, **args)

        def page_url(state: HoursListing) -> str:
            return listing_url("hours", state)

        return render_template(
            "hours.html",
            listing=listing,
            result=result,
            error=error,
            assistant_id=assistant_id,
            sort_columns=SORT_COLUMNS,
            filter_columns=FILTER_COLUMNS,
            page_url=page_url,
            listing_url=listing_url,
            active_page="hours",
        )

    @app.route("/hours.csv", methods=["GET"], endpoint="hours_csv")
    @login_required
    def hours_csv():
        try:
            query = _export_query()
            rows = container.time_entry_service.export_rows(current_user=current_user(), query=query)
        except DomainError as e:
            return _json_error(e)
        return _write_export_csv(rows=rows, filename="hours.csv")

    @app.route("/hours.xlsx", methods=["GET"], endpoint="hours_xlsx")
    @login_required
    def hours_xlsx():
        try:
            query = _export_query()
            rows = container.time_entry_service.export_rows(current_user=current_user(), query=query)
        except DomainError as e:
            return _json_error(e)
        return _write_export_xlsx(rows=rows, filename="hours.xlsx")

    @app.route("/admin/hours/aggregated", methods=["GET"], endpoint="admin_hours_aggregated")
    @admin_required
    def admin_hours_aggregated():
        result = None
        try:
            result = container.time_entry_service.list_aggregated(current_user=current_user(), args=request.args)
        except ValidationError as e:
            flash(str(e), "danger")

        return render_template(
            "admin/hours_aggregated.html",
            result=result,
            sort_by=request.args.get("sortBy", "assistant"),
            direction=request.args.get("direction", "ASC"),
            active_page="admin_hours_aggregated",
        )

    @app.route("/api/hours", methods=["GET"], endpoint="api_hours")
    @login_required
    def api_hours():
        try:
            query = HoursQuery.from_args(request.args)
            page = container.time_entry_service.list_hours(current_user=current_user(), query=query)
        except Exception as e:
            return _json_error(e)
        return jsonify(page_to_json(page))

    @app.route("/api/hours/aggregated", methods=["GET"], endpoint="api_hours_aggregated")
    @admin_required
    def api_hours_aggregated():
        try:
            page = container.time_entry_service.list_aggregated(current_user=current_user(), args=request.args)
        except Exception as e:
            return _json_error(e)
        return jsonify(
            {
                "data": {
                    "timeEntries": [aggregated_to_json(r) for r in page.rows],
                    "count": page.count,
                    "from": page.date_from.isoformat(),
                }
            }
        )

    @app.route("/api/hours/<int:entry_id>", methods=["GET"], endpoint="api_hours_get")
    @login_required
    def api_hours_get(entry_id: int):
        try:
            entry = container.time_entry_service.get_entry(current_user=current_user(), entry_id=entry_id)
        except Exception as e:
            return _json_error(e)
        return jsonify({"data": entry_to_json(entry)})

    @app.route("/api/hours/sync", methods=["POST"], endpoint="api_hours_sync")
    @admin_required
    def api_hours_sync():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            synced = container.time_entry_service.sync_entries(current_user=current_user(), payload=payload)
        except Exception as e:
            return _json_error(e)
        return jsonify({"data": {"synced": synced}})

    @app.route("/api/assistants/<int:assistant_id>/harvest-user", methods=["POST"], endpoint="api_link_assistant")
    @admin_required
    def api_link_assistant(assistant_id: int):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        try:
            updated = container.time_entry_service.link_assistant(
                current_user=current_user(),
                assistant_id=assistant_id,
                harvest_user_id=payload.get("harvestUserId"),
            )
        except Exception as e:
            return _json_error(e)
        return jsonify({"data": {"updated": updated}})

    @app.route("/api/companies/<int:company_id>/harvest-client", methods=["POST"], endpoint="api_link_company")
    @admin_required
    def api_link_company(company_id: int):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        try:
            updated = container.time_entry_service.link_company(
                current_user=current_user(),
                company_id=company_id,
                harvest_client_id=payload.get("harvestClientId"),
            )
        except Exception as e:
            return _json_error(e)
        return jsonify({"data": {"updated": updated}})
