#!/usr/bin/env python3

from pathlib import Path

from flask import Flask, jsonify, redirect, request, url_for

from picker.modules import settings as S
from picker.modules.picker import Picker
from picker.modules.table_format import dump_table, load_table
from picker.modules.weighted_sampler import AmountError, make_rng
from picker.modules.weighted_set import ItemNameError, WeightedSet, WeightError


app = Flask(__name__)
app.config["TABLE_PATH"] = S.APP_TABLE_PATH
app.config["MAX_TRIALS"] = S.DEFAULT_TEST_TRIALS


def _table_path() -> Path:
    return Path(app.config["TABLE_PATH"])


def _load():
    """Current table and its load errors; a missing file is an empty table."""
    path = _table_path()
    if not path.is_file():
        return WeightedSet(), []
    loaded = load_table(path)
    return loaded.table, loaded.errors


def _save(table: WeightedSet) -> None:
    _table_path().write_text(dump_table(table), encoding="utf-8")


def _picker(table: WeightedSet) -> Picker:
    seed = request.args.get("seed", type=int)
    return Picker(table, rng=make_rng(seed=seed), workers=1)


def _bad_request(message: str):
    return jsonify({"error": message}), 400


def _json_object():
    """Request body as a dict; None when it is not a JSON object."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    return payload if isinstance(payload, dict) else None


def _table_json(table: WeightedSet, errors):
    return {
        "repetitive": table.repetitive,
        "inverted": table.inverted,
        "fair": table.is_fair(),
        "items": [
            {"name": it.name, "weight": it.weight, "effective_weight": eff}
            for it, eff in zip(table, table.effective_weights())
        ],
        "load_errors": errors,
    }


@app.get("/")
def home():
    return redirect(url_for("api_table"))


# ---------------------------------------------------------------------------
# TABLE EDITING
# ---------------------------------------------------------------------------

@app.get("/api/table")
def api_table():
    table, errors = _load()
    return jsonify(_table_json(table, errors))


@app.post("/api/items")
def api_upsert_item():
    """Insert an item or update its weight. Body: {"name": ..., "weight": ...}"""
    payload = _json_object()
    if payload is None:
        return _bad_request("Request body must be a JSON object")
    table, _ = _load()
    try:
        item = table.upsert(payload.get("name"), payload.get("weight"))
    except (ItemNameError, WeightError) as e:
        return _bad_request(str(e))
    _save(table)
    return jsonify({"name": item.name, "weight": item.weight})


@app.delete("/api/items/<name>")
def api_delete_item(name: str):
    table, _ = _load()
    if not table.delete(name):
        return jsonify({"error": f"Item {name!r} not found"}), 404
    _save(table)
    return jsonify({"deleted": name})


@app.post("/api/flags")
def api_flags():
    """Body: {"repetitive": bool, "inverted": bool} (either key optional)."""
    payload = _json_object()
    if payload is None:
        return _bad_request("Request body must be a JSON object")
    table, errors = _load()
    for key in ("repetitive", "inverted"):
        if key in payload:
            if not isinstance(payload[key], bool):
                return _bad_request(f"{key} must be true or false")
            setattr(table, key, payload[key])
    _save(table)
    return jsonify(_table_json(table, errors))


# ---------------------------------------------------------------------------
# PICKING / PROBABILITIES
# ---------------------------------------------------------------------------

@app.get("/api/draw")
def api_draw():
    amount = request.args.get("amount", default=1, type=int)
    table, _ = _load()
    try:
        picks = _picker(table).draw(amount)
    except AmountError as e:
        return _bad_request(str(e))
    return jsonify({"amount": amount, "picks": picks, "nonuniform": not table.is_fair()})


@app.get("/api/probabilities")
def api_probabilities():
    amount = request.args.get("amount", default=1, type=int)
    table, _ = _load()
    try:
        probabilities = _picker(table).exact_probabilities(amount)
    except AmountError as e:
        return _bad_request(str(e))
    return jsonify({"amount": amount, "repetitive": table.repetitive, "probabilities": probabilities})


@app.get("/api/validate")
def api_validate():
    amount = request.args.get("amount", default=1, type=int)
    trials = request.args.get("trials", default=10_000, type=int)
    if trials < 1 or trials > app.config["MAX_TRIALS"]:
        return _bad_request(f"trials must be between 1 and {app.config['MAX_TRIALS']}")
    table, _ = _load()
    try:
        frequencies = _picker(table).validate(amount, trials)
    except AmountError as e:
        return _bad_request(str(e))
    return jsonify({"amount": amount, "trials": trials, "frequencies": frequencies})


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)
