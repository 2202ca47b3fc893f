# expense_splitter/app.py
import logging
import threading

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from expense_splitter.config import Config
from expense_splitter.errors import (
    NotFoundError,
    ReferentialIntegrityError,
    GroupNotFoundError,
    SplitterError,
    StoreError,
    ValidationError,
)
from expense_splitter.group import (
    add_expense,
    add_participant,
    delete_expense,
    new_group,
    new_group_id,
    remove_participant,
    share_link,
)
from expense_splitter.settlement import Expense, summarize
from expense_splitter.store import create_store

ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ReferentialIntegrityError, 409),
    (StoreError, 500),
)


class GroupLocks:
    """One lock per group id, so edits to the same group run one at a time."""

    def __init__(self):
        self._lock = threading.Lock()
        self._locks = {}

    def __call__(self, group_id):
        with self._lock:
            return self._locks.setdefault(group_id, threading.Lock())


def create_app(config_class=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    # Balances come back in roster order
    app.json.sort_keys = False

    log_level = str(app.config["LOG_LEVEL"]).upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("expense_splitter").setLevel(log_level)
    app.logger.setLevel(log_level)

    # This allows the React frontend to talk to this backend
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    if store is None:
        store = create_store(app.config["STORE_BACKEND"], app.config["STORE_DIR"])
    app.extensions["group_store"] = store
    app.extensions["group_locks"] = GroupLocks()

    register_error_handlers(app)
    register_routes(app)

    app.logger.info("Expense splitter ready (store: %s)", type(store).__name__)
    return app


def register_error_handlers(app):
    @app.errorhandler(SplitterError)
    def handle_splitter_error(e):
        status = next((code for cls, code in ERROR_STATUS if isinstance(e, cls)), 400)
        if status >= 500:
            app.logger.error("Request failed: %s", e)
        return jsonify(e.to_dict()), status

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"error": "Not found", "details": {"path": request.path}}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "details": {"method": request.method}}), 405

    # Flask has already logged the traceback by the time this runs
    @app.errorhandler(500)
    def handle_internal_error(e):
        return jsonify({"error": "Internal server error", "details": {}}), 500


def _store():
    return current_app.extensions["group_store"]


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _load(group_id):
    state = _store().load(group_id)
    if state is None:
        raise GroupNotFoundError("Group not found", {"group": group_id})
    return state


def _apply(group_id, command, *args):
    """Load a group, run one command on it and save the result."""
    with current_app.extensions["group_locks"](group_id):
        state = _load(group_id)
        try:
            state = command(state, *args)
        except SplitterError as e:
            current_app.logger.info("Rejected %s on %s: %s", command.__name__, group_id, e)
            raise
        _store().save(group_id, state)
    return state


def _group_payload(group_id, state):
    base_url = current_app.config.get("PUBLIC_BASE_URL") or request.host_url
    payload = {"groupId": group_id, "shareLink": share_link(base_url, group_id)}
    payload.update(state.to_dict())

    # Older records can hold expenses for people since removed; still return
    # the group so those expenses can be deleted
    try:
        payload["summary"] = state.summary()
    except ReferentialIntegrityError as e:
        stale = state.stale_expense_ids()
        current_app.logger.warning("Group %s has stale expenses: %s", group_id, stale)
        payload["summary"] = None
        payload["summaryError"] = {"error": e.message, "details": {"expenses": stale}}
    return payload


def register_routes(app):
    # --- 1. HEALTH CHECK ROUTE ---
    @app.route('/api', methods=['GET'])
    def health_check():
        return jsonify({"status": "healthy", "message": "Backend is running!"})

    # --- 2. CALCULATION ROUTE ---
    # Stateless: the caller sends the whole group and gets balances back
    @app.route('/api/calculate', methods=['POST'])
    def calculate():
        data = _json_body()
        people = data.get("people")
        expenses = data.get("expenses") or []
        if not isinstance(people, list) or not isinstance(expenses, list):
            raise ValidationError("people and expenses must be lists")

        roster = new_group(people).roster
        return jsonify(summarize(roster, [Expense.from_dict(item) for item in expenses]))

    # --- 3. GROUP ROUTES ---
    @app.route('/api/groups', methods=['POST'])
    def create_group():
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        group_id = new_group_id()
        state = new_group(data.get("people"))
        _store().save(group_id, state)
        current_app.logger.info("Created %s with %d people", group_id, len(state.roster))
        return jsonify(_group_payload(group_id, state)), 201

    @app.route('/api/groups/<group_id>', methods=['GET'])
    def get_group(group_id):
        return jsonify(_group_payload(group_id, _load(group_id)))

    @app.route('/api/groups/<group_id>/participants', methods=['POST'])
    def create_participant(group_id):
        data = _json_body()
        state = _apply(group_id, add_participant, data.get("name"))
        return jsonify(_group_payload(group_id, state)), 201

    @app.route('/api/groups/<group_id>/participants/<path:name>', methods=['DELETE'])
    def delete_participant(group_id, name):
        state = _apply(group_id, remove_participant, name)
        return jsonify(_group_payload(group_id, state))

    @app.route('/api/groups/<group_id>/expenses', methods=['POST'])
    def create_expense(group_id):
        data = _json_body()
        split_among = data.get("splitAmong")
        if split_among is None or isinstance(split_among, str) or not isinstance(split_among, list):
            raise ValidationError("splitAmong must be a list of names", {"splitAmong": split_among})

        state = _apply(
            group_id,
            add_expense,
            data.get("description"),
            data.get("amount"),
            data.get("paidBy"),
            split_among,
        )
        return jsonify(_group_payload(group_id, state)), 201

    @app.route('/api/groups/<group_id>/expenses/<int:expense_id>', methods=['DELETE'])
    def remove_expense(group_id, expense_id):
        state = _apply(group_id, delete_expense, expense_id)
        return jsonify(_group_payload(group_id, state))
