# Overview: Flask API routes for transactions; parses input and returns JSON responses.

# backend/motoparts/routes/transactions.py
"""Sale / purchase / return transactions and their stock effects."""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..validation import ValidationError, parse_transaction_request
from ..services.transaction_service import (
    TransactionWorkflow,
    EmptyItemsError,
    NotFoundError,
    TransactionAbortedError,
)
from ..decorators import require_auth
from motoparts.time_utils import parse_iso_datetime, is_date_only, end_of_day


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _workflow() -> TransactionWorkflow:
    return TransactionWorkflow(db.session, logger=current_app.logger)


@transactions_bp.get("")
def list_transactions_route():
    """List transaction headers, newest first."""
    transactions = _workflow().list_all()
    return jsonify([t.to_dict() for t in transactions]), 200


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    """Get transaction with items and their products."""
    txn = _workflow().get(transaction_id)
    if not txn:
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify(txn.to_dict(include_items=True)), 200


@transactions_bp.get("/<int:transaction_id>/receipt")
def transaction_receipt_route(transaction_id: int):
    """
    Receipt view: the transaction with every item's product, category and brand.
    """
    txn = _workflow().get(transaction_id)
    if not txn:
        return jsonify({"error": "Transaction not found"}), 404
    return jsonify(txn.to_dict(include_items=True)), 200


@transactions_bp.get("/filter/date")
def filter_transactions_by_date_route():
    """
    Transactions dated between startDate and endDate (inclusive).

    Query params:
    - startDate: ISO-8601 date or datetime (required)
    - endDate: ISO-8601 date or datetime (required); a bare date covers the whole day
    """
    start_raw = request.args.get("startDate")
    end_raw = request.args.get("endDate")

    if not start_raw or not end_raw:
        return jsonify({"error": "Start date and end date are required"}), 400

    try:
        start = parse_iso_datetime(start_raw)
        end = parse_iso_datetime(end_raw)
    except ValueError:
        return jsonify({"error": "startDate and endDate must be ISO-8601 dates"}), 400

    if is_date_only(end_raw):
        end = end_of_day(end)

    if start > end:
        return jsonify({"error": "startDate must not be after endDate"}), 400

    transactions = _workflow().list_between(start, end)
    return jsonify([t.to_dict() for t in transactions]), 200


@transactions_bp.post("")
@require_auth
def create_transaction_route():
    """
    Record a transaction and update product stock.

    Body: {type, paymentMethod?, customerName?, notes?, items: [{productId, quantity, price}]}
    """
    payload = request.get_json(silent=True)

    try:
        txn_request = parse_transaction_request(payload)
        txn = _workflow().create(txn_request)
    except (ValidationError, EmptyItemsError) as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except TransactionAbortedError:
        return jsonify({"error": "Internal server error"}), 500
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(txn.to_dict(include_items=True)), 201


@transactions_bp.delete("/<int:transaction_id>")
@require_auth
def delete_transaction_route(transaction_id: int):
    """Delete a transaction and reverse its stock changes."""
    try:
        _workflow().delete(transaction_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except TransactionAbortedError:
        return jsonify({"error": "Internal server error"}), 500
    except Exception:
        current_app.logger.exception("Failed to delete transaction")
        return jsonify({"error": "Internal server error"}), 500

    return "", 204
