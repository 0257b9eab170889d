from flask import Blueprint, Response, request, current_app

from stockbook.decorators import require_auth
from stockbook.responses import ok, fail
from stockbook.services import reporting_service, ledger_service, export_service, mail_service


reports_bp = Blueprint("reports", __name__, url_prefix="/report")


@reports_bp.get("/salesReport")
@require_auth
def sales_report():
    start = request.args.get("startDate")
    end = request.args.get("endDate")

    try:
        report = reporting_service.sales_report(start=start, end=end)
        return ok(report)
    except reporting_service.ReportError as exc:
        return fail(str(exc), 400)
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return fail("Internal server error", 500)


@reports_bp.get("/overview")
@require_auth
def sales_overview():
    try:
        return ok(reporting_service.sales_overview())
    except Exception:
        current_app.logger.exception("Failed to build sales overview")
        return fail("Internal server error", 500)


@reports_bp.get("/items")
@require_auth
def inventory_valuation_report():
    try:
        return ok(reporting_service.inventory_valuation())
    except Exception:
        current_app.logger.exception("Failed to build inventory report")
        return fail("Internal server error", 500)


@reports_bp.get("/ledger/<int:customer_id>")
@require_auth
def customer_ledger(customer_id: int):
    try:
        ledger = ledger_service.get_customer_ledger(customer_id)
    except Exception:
        current_app.logger.exception("Failed to build ledger for customer %s", customer_id)
        return fail("Internal server error", 500)
    return ok(ledger.to_dict())


@reports_bp.post("/export")
@require_auth
def export_report():
    payload = request.get_json(silent=True) or {}

    try:
        content, mimetype, filename = export_service.export_report(payload.get("type"), payload.get("data"))
    except export_service.ExportError as exc:
        return fail(str(exc), 400)

    return Response(
        content,
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@reports_bp.post("/send-report")
@require_auth
def send_report():
    upload = request.files.get("file")
    recipient = request.form.get("recipient")
    subject = request.form.get("subject")
    body = request.form.get("body")

    if not upload or not recipient or not subject or not body:
        return fail("file, recipient, subject and body are required", 400)

    try:
        mail_service.send_report(
            recipient=recipient,
            subject=subject,
            body=body,
            filename=upload.filename or "report",
            content=upload.read(),
            mimetype=upload.mimetype or "application/octet-stream",
        )
    except mail_service.MailError:
        current_app.logger.exception("Failed to send report to %s", recipient)
        return fail("Failed to send report", 500)

    return ok({"message": "Report sent", "recipient": recipient})
