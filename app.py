from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from flask import Flask, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from rate_backtest.errors import AnalysisError, InsufficientDataError, RateScheduleError
from rate_backtest.models import AnalysisResult, MonthlyCharge, PlanRanking, RateSchedule, TariffBreakdown
from rate_backtest.pipeline import analyze_rows
from rate_backtest.tariffs import read_rate_schedule
from upload_flow import UploadValidationError, read_upload_rows

log = logging.getLogger(__name__)

MAX_UPLOAD_MB = 10

app = Flask(__name__, static_folder=None)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024
app.config["RATE_SCHEDULE_PATH"] = os.environ.get("RATE_SCHEDULE_PATH")

# Aggregates of one run are not shared; a second upload is refused, not interleaved.
_analysis_lock = threading.Lock()


@app.get("/api/rates")
def rates() -> object:
    schedule = _load_schedule()
    return jsonify(
        {
            "effectiveDate": schedule.effective_date.isoformat(),
            "fuelRider": {
                "summer": schedule.fuel_rider_summer,
                "winter": schedule.fuel_rider_winter,
            },
            "taxMultiplier": schedule.tax_multiplier,
            "standardTariff": schedule.standard_tariff_id,
            "tariffs": [
                {"id": tariff.id, "displayName": tariff.display_name}
                for tariff in schedule.tariffs
            ],
        }
    )


@app.post("/api/upload")
def upload() -> object:
    if "file" not in request.files:
        return jsonify({"error": "No file received."}), 400
    file = request.files["file"]
    if not file.filename:
        return jsonify({"error": "File name is missing."}), 400

    try:
        rows = read_upload_rows(file.read(), file.filename)
    except UploadValidationError as exc:
        return jsonify({"error": "Upload validation failed.", "details": exc.user_messages()}), 422

    if not _analysis_lock.acquire(blocking=False):
        return jsonify({"error": "An analysis is already running. Try again shortly."}), 409
    try:
        result = analyze_rows(rows, _load_schedule())
    except InsufficientDataError as exc:
        return jsonify({"error": str(exc), "days": round(exc.days, 1)}), 422
    except AnalysisError as exc:
        log.info("Rejected upload %s: %s", file.filename, exc)
        return jsonify({"error": str(exc)}), 422
    finally:
        _analysis_lock.release()

    return jsonify(_format_result(result))


@app.errorhandler(RequestEntityTooLarge)
def handle_file_too_large(_: RequestEntityTooLarge) -> object:
    return (
        jsonify({"error": f"File is too large. At most {MAX_UPLOAD_MB} MB is allowed."}),
        413,
    )


@app.errorhandler(RateScheduleError)
def handle_rate_schedule_error(exc: RateScheduleError) -> object:
    log.error("Rate schedule unavailable: %s", exc)
    return jsonify({"error": "Rate schedule is unavailable.", "details": str(exc)}), 500


def _load_schedule() -> RateSchedule:
    path = app.config.get("RATE_SCHEDULE_PATH")
    return read_rate_schedule(Path(path) if path else None)


def _format_result(result: AnalysisResult) -> dict[str, object]:
    ranking = result.ranking
    window = result.series.window
    return {
        "plans": [_format_plan(item, ranking) for item in result.breakdowns],
        "ranking": [item.tariff_id for item in ranking.ranked],
        "recommended": ranking.recommended_id,
        "savings": round(ranking.savings, 2),
        "stats": {
            "windowStart": window.start.isoformat(),
            "windowEnd": window.end.isoformat(),
            "durationDays": round(window.total_days, 1),
            "totalUsageKwh": round(result.aggregates.total_usage_kwh, 2),
            "billingDays": result.aggregates.billing_days,
            "gapCount": result.series.gap_count,
            "note": result.series.note,
            "rateScheduleDate": result.schedule.effective_date.isoformat(),
        },
    }


def _format_plan(item: TariffBreakdown, ranking: PlanRanking) -> dict[str, object]:
    breakdown: dict[str, object] = {
        "fixed": round(item.fixed_charge, 2),
        "energy": round(item.energy_charge, 2),
        "fuelRider": round(item.fuel_rider_charge, 2),
        "tax": round(item.tax_charge, 2),
    }
    if item.demand_charge is not None:
        breakdown["demand"] = round(item.demand_charge, 2)
    return {
        "id": item.tariff_id,
        "displayName": item.display_name,
        "total": round(item.total, 2),
        "savingsVsStandard": round(ranking.savings_vs_standard(item), 2),
        "breakdown": breakdown,
        "energyByPeriod": {
            period: round(value, 2) for period, value in item.energy_by_period.items()
        },
        "monthly": [_format_month(line) for line in item.monthly],
    }


def _format_month(line: MonthlyCharge) -> dict[str, object]:
    formatted: dict[str, object] = {
        "period": f"{line.year}-{line.month:02d}",
        "usageKwh": round(line.usage_kwh, 2),
        "billingDays": line.billing_days,
    }
    if line.fixed_charge is not None:
        formatted["fixed"] = round(line.fixed_charge, 2)
    if line.energy_charge is not None:
        formatted["energy"] = round(line.energy_charge, 2)
    if line.tier_usage_kwh:
        formatted["tierUsageKwh"] = [round(kwh, 2) for kwh in line.tier_usage_kwh]
    if line.demand_charge is not None:
        formatted["peakKwh"] = round(line.peak_interval_kwh, 2)
        formatted["demand"] = round(line.demand_charge, 2)
    return formatted


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host="0.0.0.0", port=5000, debug=True)
