"""Web-based journal dashboard for TripJournal.

A lightweight Flask app serving:
- the month journal (days, drives, grouped drives, totals)
- checkbox selection state and batch-action availability
- batch actions (classify / group / ungroup) proxied to the journal service
- drive and grouped-drive detail pages with a Leaflet map
"""

import logging
import threading
from dataclasses import asdict
from datetime import date
from typing import Any, Optional

from flask import Flask, jsonify, render_template_string, request

from tripjournal.core.dispatcher import DispatchOutcome, OutcomeStatus
from tripjournal.core.models import ActionKind, Classification, DriveDetails
from tripjournal.persistence.journal_client import JournalClientError

logger = logging.getLogger(__name__)

# Will be set by start_dashboard()
_app_ref = None  # type: Optional[Any]  # JournalApp

_STATUS_CODES = {
    OutcomeStatus.APPLIED: 200,
    OutcomeStatus.REJECTED: 400,
    OutcomeStatus.BUSY: 409,
    OutcomeStatus.STALE: 409,
    OutcomeStatus.FAILED: 502,
}


def create_flask_app() -> Flask:
    app = Flask(__name__)
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    @app.route("/", methods=["GET", "POST"])
    def index():
        if _app_ref is None:
            return "TripJournal is not initialized", 503
        params = request.form if request.method == "POST" else request.args
        year = _int_param(params, "year")
        month = _int_param(params, "month")
        car_id = _int_param(params, "car")

        state = _app_ref.state
        wanted = (
            year or state.year or date.today().year,
            month or state.month or date.today().month,
            car_id or state.car_id or _app_ref.config.get("car_id", 1),
        )
        if _app_ref.month_data is None or wanted != (state.year, state.month, state.car_id):
            _app_ref.load_month(*wanted)
        return render_template_string(JOURNAL_HTML, **_page_context())

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @app.route("/api/selection")
    def api_selection():
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        with _app_ref.lock:
            return jsonify(_selection_response())

    @app.route("/api/selection/master", methods=["POST"])
    def api_toggle_master():
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        day_key = _parse_day(data.get("day"))
        if day_key is None:
            return jsonify({"error": "valid day required"}), 400
        with _app_ref.lock:
            _app_ref.selection.toggle_master(day_key, bool(data.get("checked")))
            return jsonify(_selection_response(day_key))

    @app.route("/api/selection/drive", methods=["POST"])
    def api_toggle_drive():
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        day_key = _parse_day(data.get("day"))
        item_id = data.get("id")
        if day_key is None or not isinstance(item_id, int) or isinstance(item_id, bool):
            return jsonify({"error": "valid day and id required"}), 400
        with _app_ref.lock:
            _app_ref.selection.toggle_drive(
                day_key, item_id, bool(data.get("group")), bool(data.get("checked"))
            )
            return jsonify(_selection_response(day_key))

    # ------------------------------------------------------------------
    # Batch actions
    # ------------------------------------------------------------------

    @app.route("/action", methods=["POST"])
    def api_action():
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        try:
            action = ActionKind(request.form.get("action", ""))
            classification = None
            if action is ActionKind.CLASSIFY:
                classification = Classification.from_form_value(
                    request.form.get("classification", "")
                )
            plain_ids = _id_list("drive")
            group_ids = _id_list("groupeddrive")
        except ValueError as exc:
            return jsonify({"status": OutcomeStatus.REJECTED.value, "message": str(exc)}), 400

        outcome = _app_ref.dispatcher.submit(action, classification, plain_ids, group_ids)
        return jsonify(_outcome_response(outcome)), _STATUS_CODES[outcome.status]

    @app.route("/api/totals")
    def api_totals():
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        with _app_ref.lock:
            return jsonify(_totals_response())

    # ------------------------------------------------------------------
    # Details
    # ------------------------------------------------------------------

    @app.route("/details/<int:drive_id>")
    def drive_details_page(drive_id):
        return render_template_string(DETAILS_HTML, **_details_context(drive_id, False))

    @app.route("/group-details/<int:group_id>")
    @app.route("/groupdetails/<int:group_id>")
    def group_details_page(group_id):
        return render_template_string(DETAILS_HTML, **_details_context(group_id, True))

    @app.route("/api/drive/<int:drive_id>")
    def api_drive(drive_id):
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        try:
            details = _app_ref.client.fetch_drive(drive_id)
        except JournalClientError as exc:
            logger.error("Fetching drive %d failed: %s", drive_id, exc)
            return jsonify({"error": "journal service unavailable"}), 502
        return jsonify(_details_response(details))

    @app.route("/api/drive/group/<int:group_id>")
    def api_group(group_id):
        if _app_ref is None:
            return jsonify({"error": "not initialized"}), 503
        try:
            details = _app_ref.client.fetch_group(group_id)
        except JournalClientError as exc:
            logger.error("Fetching grouped drive %d failed: %s", group_id, exc)
            return jsonify({"error": "journal service unavailable"}), 502
        return jsonify(_details_response(details))

    return app


def start_dashboard(app_ref, host: str = "127.0.0.1", port: int = 5556) -> threading.Thread:
    """Start the Flask dashboard in a daemon thread."""
    global _app_ref
    _app_ref = app_ref
    flask_app = create_flask_app()

    def _run():
        flask_app.run(host=host, port=port, debug=False, use_reloader=False)

    t = threading.Thread(target=_run, daemon=True, name="tripjournal-web")
    t.start()
    logger.info("Dashboard started at http://%s:%d", host, port)
    return t


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------

def _int_param(params, name: str) -> Optional[int]:
    try:
        return int(params.get(name, ""))
    except (TypeError, ValueError):
        return None


def _parse_day(value) -> Optional[date]:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def _id_list(field_name: str) -> Optional[list[int]]:
    """Ids from repeated form fields, or None when the field is absent."""
    if field_name not in request.form:
        return None
    return [int(v) for v in request.form.getlist(field_name) if v.strip()]


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def _selection_response(day_key: Optional[date] = None) -> dict:
    selection = _app_ref.selection
    plain, grouped = selection.counts()
    response = {
        "counts": {"plain": plain, "grouped": grouped},
        "availability": selection.availability.as_dict(),
        "plain_ids": selection.selected_plain_ids(),
        "group_ids": selection.selected_group_ids(),
    }
    if day_key is not None:
        response["day"] = day_key.isoformat()
        response["master"] = selection.is_master_checked(day_key)
    return response


def _totals_response() -> dict:
    view = _app_ref.formatter.format_totals(_app_ref.state.totals)
    response = asdict(view)
    response["has_unclassified"] = view.has_unclassified
    response["html"] = render_template_string(TOTALS_HTML, totals=view, labels=_app_ref.formatter.labels)
    return response


def _outcome_response(outcome: DispatchOutcome) -> dict:
    response: dict[str, Any] = {"status": outcome.status.value, "message": outcome.message}
    with _app_ref.lock:
        response["availability"] = _app_ref.selection.availability.as_dict()
        if outcome.ok:
            response["totals"] = _totals_response()
            response["days"] = [
                {"key": view.key, "html": _render_day(view)}
                for view in _app_ref.renderer.render_all(outcome.result.affected_days)
            ]
    return response


def _details_response(details: DriveDetails) -> dict:
    return {
        "MapData": details.map_data,
        "Drives": {
            "StartOdometer": details.start_odometer,
            "EndOdometer": details.end_odometer,
            "Classification": details.classification,
            "Comment": details.comment,
        },
    }


def _render_day(view) -> str:
    return render_template_string(DAY_HTML, day=view, labels=_app_ref.formatter.labels)


def _page_context() -> dict:
    state = _app_ref.state
    month_data = _app_ref.month_data
    today = date.today()
    years = list(month_data.years) if month_data and month_data.years else []
    if state.year and state.year not in years:
        years.append(state.year)
    if not years:
        years = [today.year]
    cars = list(month_data.cars) if month_data else []
    with _app_ref.lock:
        views = _app_ref.renderer.render_all(state.days)
        availability = _app_ref.selection.availability
        totals_view = _app_ref.formatter.format_totals(state.totals)
    labels = _app_ref.formatter.labels
    return {
        "year": state.year or today.year,
        "month": state.month or today.month,
        "car_id": state.car_id or _app_ref.config.get("car_id", 1),
        "years": sorted(years),
        "months": list(enumerate(labels["months"], start=1)),
        "cars": cars,
        "days": [(v, _render_day(v)) for v in views],
        "totals_html": render_template_string(TOTALS_HTML, totals=totals_view, labels=labels),
        "availability": availability,
        "labels": labels,
        "error": _app_ref.last_error,
    }


def _details_context(item_id: int, group: bool) -> dict:
    map_config = _app_ref.config.get("map", {}) if _app_ref else {}
    return {
        "id": item_id,
        "group": group,
        "tile_url": map_config.get("tile_url", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"),
        "attribution": map_config.get("attribution", ""),
    }


TOTALS_HTML = r"""<div id="totaldistances">
  {{ labels.total_distance }}: {{ totals.total_distance }}<br>
  {{ labels.business_part }}: {{ totals.business_distance }}<br>
  {{ labels.private_part }}: {{ totals.private_distance }}
  {% if totals.unclassified_distance %}<br><span class="anomaly">{{ labels.unclassified_distance }}: {{ totals.unclassified_distance }}</span>{% endif %}
</div>
<div id="totaldurations">
  {{ labels.total_duration }}: {{ totals.total_duration }}<br>
  {{ labels.business_part }}: {{ totals.business_duration }}<br>
  {{ labels.private_part }}: {{ totals.private_duration }}
  {% if totals.unclassified_duration %}<br><span class="anomaly">{{ labels.unclassified_duration }}: {{ totals.unclassified_duration }}</span>{% endif %}
</div>"""


DAY_HTML = r"""<tr class="dayheader{% if day.is_weekend %} weekend{% endif %}">
  <td><input type="checkbox" class="mastercb" data-day="{{ day.key }}"></td>
  <td colspan="6"><span class="date">{{ day.header }}</span></td>
</tr>
{% for row in day.rows %}
<tr class="drive{% if row.inconsistent %} inconsistent{% endif %}">
  <td><input type="checkbox" class="{{ row.checkbox_class }}" name="{{ row.checkbox_name }}"
             value="{{ row.item_id }}" data-day="{{ day.key }}" data-group="{{ 1 if row.is_group else 0 }}"></td>
  <td>{% if row.is_group %}<a href="{{ row.link }}" title="grouped">&#8645;</a>{% elif row.inconsistent %}!{% endif %}</td>
  <td><a href="{{ row.link }}">{{ row.end_address }}<br>{{ row.start_address }}</a></td>
  <td class="times"><a href="{{ row.link }}">{{ row.end_time }}<br>{{ row.start_time }}</a></td>
  <td><a href="{{ row.link }}">{{ labels.distance }}: {{ row.distance }}<br>{{ labels.duration }}: {{ row.duration }}</a></td>
  <td class="{{ row.classification_class }}"><a class="{{ row.classification_class }}" href="{{ row.link }}">{{ row.classification_label }}</a></td>
</tr>
{% endfor %}"""


JOURNAL_HTML = r"""<!DOCTYPE html>
<html lang="sv">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ labels.title }}</title>
<style>
  :root { --bg: #f8f9fa; --card: #fff; --business: #2f6f9f; --private: #5a9a6e;
          --anomaly: #c0392b; --text: #333; --muted: #888; --border: #e5e5e5; }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 1000px; margin: 0 auto; padding: 20px; }
  .card { background: var(--card); border-radius: 10px; padding: 20px; margin-bottom: 16px;
          box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
  .totals { display: flex; gap: 40px; }
  .anomaly { color: var(--anomaly); font-weight: 600; }
  .error { color: var(--anomaly); }
  table { width: 100%; border-collapse: collapse; }
  td { padding: 4px 6px; vertical-align: middle; font-size: 0.9em; }
  tr.dayheader td { padding-top: 16px; font-weight: 600; }
  tr.weekend .date { color: var(--muted); }
  tr.inconsistent { background: #fff3f0; }
  td.times { text-align: right; }
  a { color: inherit; text-decoration: none; }
  .business { color: var(--business); }
  .private { color: var(--private); }
  .actions button { padding: 6px 14px; margin-right: 6px; }
</style>
</head>
<body>
<div class="container">
  <form method="post" action="/" class="card">
    <select name="car">{% for car in cars %}<option value="{{ car.id }}"{% if car.id == car_id %} selected{% endif %}>{{ car.name or car.model }}</option>{% endfor %}</select>
    <select name="year">{% for y in years %}<option value="{{ y }}"{% if y == year %} selected{% endif %}>{{ y }}</option>{% endfor %}</select>
    <select name="month">{% for num, name in months %}<option value="{{ num }}"{% if num == month %} selected{% endif %}>{{ name }}</option>{% endfor %}</select>
    <button type="submit">OK</button>
  </form>
  {% if error %}<div class="card error">{{ error }}</div>{% endif %}
  <div class="card totals" id="totals">{{ totals_html|safe }}</div>
  <div class="card actions">
    <button id="btn_business"{% if not availability.classify_business %} disabled{% endif %}>{{ labels.business }}</button>
    <button id="btn_private"{% if not availability.classify_private %} disabled{% endif %}>{{ labels.private }}</button>
    <button id="btn_group"{% if not availability.group %} disabled{% endif %}>Group</button>
    <button id="btn_ungroup"{% if not availability.ungroup %} disabled{% endif %}>Ungroup</button>
  </div>
  <form id="dayform" class="card">
    <table>
    {% for view, html in days %}
      <tbody id="day_{{ view.key }}">{{ html|safe }}</tbody>
    {% else %}
      <tbody><tr><td>{{ labels.no_drives }}</td></tr></tbody>
    {% endfor %}
    </table>
  </form>
</div>
<script>
const buttons = {classify_business: "btn_business", classify_private: "btn_private",
                 group: "btn_group", ungroup: "btn_ungroup"};
let inFlight = false;

function applyAvailability(availability) {
  for (const [key, id] of Object.entries(buttons)) {
    document.getElementById(id).disabled = inFlight || !availability[key];
  }
}

async function postJson(url, body) {
  const resp = await fetch(url, {method: "POST", headers: {"Content-Type": "application/json"},
                                 body: JSON.stringify(body)});
  return resp.json();
}

document.addEventListener("change", async (e) => {
  const cb = e.target;
  if (cb.classList.contains("mastercb")) {
    document.querySelectorAll(`#day_${cb.dataset.day} .drivecb`).forEach(x => x.checked = cb.checked);
    const data = await postJson("/api/selection/master", {day: cb.dataset.day, checked: cb.checked});
    applyAvailability(data.availability);
  } else if (cb.classList.contains("drivecb")) {
    if (!cb.checked) {
      document.querySelectorAll(`#day_${cb.dataset.day} .mastercb`).forEach(x => x.checked = false);
    }
    const data = await postJson("/api/selection/drive", {day: cb.dataset.day, id: parseInt(cb.value),
                                                          group: cb.dataset.group === "1", checked: cb.checked});
    applyAvailability(data.availability);
  }
});

async function submitAction(action, classification) {
  const form = new FormData(document.getElementById("dayform"));
  form.append("action", action);
  if (classification) form.append("classification", classification);
  if (!form.has("drive")) form.append("drive", "");
  if (!form.has("groupeddrive")) form.append("groupeddrive", "");
  inFlight = true;
  applyAvailability({});
  try {
    const resp = await fetch("/action", {method: "POST", body: new URLSearchParams(form)});
    const data = await resp.json();
    if (data.status === "applied") {
      document.getElementById("totals").innerHTML = data.totals.html;
      for (const day of data.days) {
        const body = document.getElementById("day_" + day.key);
        if (body) body.innerHTML = day.html;
      }
    } else {
      console.log("Action not applied:", data.status, data.message);
    }
    inFlight = false;
    applyAvailability(data.availability || {});
  } catch (err) {
    console.log("An error occurred.", err);
    inFlight = false;
    const sel = await (await fetch("/api/selection")).json();
    applyAvailability(sel.availability);
  }
}

document.getElementById("btn_business").onclick = () => submitAction("classify", "business");
document.getElementById("btn_private").onclick = () => submitAction("classify", "private");
document.getElementById("btn_group").onclick = () => submitAction("group");
document.getElementById("btn_ungroup").onclick = () => submitAction("ungroup");
</script>
</body>
</html>
"""


DETAILS_HTML = r"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ "Grouped drive" if group else "Drive" }} {{ id }}</title>
<link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css">
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
<style>
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; margin: 20px; }
  #map { height: 480px; margin-bottom: 16px; }
</style>
</head>
<body>
<p><a href="/">&larr;</a></p>
<div id="map"></div>
<table>
  <tr><td>Odometer</td><td><span id="odometer_start"></span> &ndash; <span id="odometer_end"></span></td></tr>
  <tr><td>Classification</td><td id="classification"></td></tr>
  <tr><td>Comment</td><td id="comment"></td></tr>
</table>
<script>
const url = "/api/drive/{{ 'group/' if group else '' }}{{ id }}";
fetch(url).then(r => r.json()).then(json => {
  const map = L.map("map");
  const layer = L.geoJSON(json.MapData);
  map.addLayer(layer);
  const bounds = layer.getBounds();
  if (bounds.isValid()) map.fitBounds(bounds); else map.setView([59.33, 18.07], 10);
  L.tileLayer({{ tile_url|tojson }}, {attribution: {{ attribution|tojson }}}).addTo(map);
  const d = json.Drives || {};
  document.getElementById("odometer_start").textContent = d.StartOdometer ?? "";
  document.getElementById("odometer_end").textContent = d.EndOdometer ?? "";
  document.getElementById("classification").textContent = d.Classification ?? "";
  document.getElementById("comment").textContent = d.Comment ?? "";
}).catch(err => console.log("Loading details failed", err));
</script>
</body>
</html>
"""
