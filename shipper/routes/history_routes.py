"""
Shipment history routes - View and prune recorded shipment runs.
"""

from flask import Blueprint, jsonify, request
from datetime import datetime, timedelta

from shipper import db
from shipper.models import ShipmentHistory


bp = Blueprint('history', __name__, url_prefix='/api/history')

STATUSES = ['running', 'uploaded', 'skipped', 'failed']


def _isoformat(value):
    return value.isoformat() if value else None


def _serialize(record, include_logs=False):
    data = {
        'id': record.id,
        'status': record.status,
        'started_at': _isoformat(record.started_at),
        'completed_at': _isoformat(record.completed_at),
        'archive_name': record.archive_name,
        'archive_size_bytes': record.archive_size_bytes,
        'target_key': record.target_key,
        'cumulative_remote_bytes': record.cumulative_remote_bytes,
        'evicted_key': record.evicted_key,
        'eviction_error': record.eviction_error,
        'failed_step': record.failed_step,
        'error_message': record.error_message,
    }
    if include_logs:
        data['logs'] = record.logs
    else:
        data['has_logs'] = bool(record.logs)
    return data


@bp.route('/', methods=['GET'])
def list_history():
    """
    Get shipment history with filtering and pagination.

    Query params:
        - status: Filter by status (running/uploaded/skipped/failed)
        - days: Only show runs from last N days
        - limit: Max number of records (default: 50, max: 200)
        - offset: Number of records to skip (default: 0)

    Returns:
        JSON with history records and metadata
    """
    status_filter = request.args.get('status')
    days_filter = request.args.get('days', type=int)
    limit = request.args.get('limit', 50, type=int)
    offset = request.args.get('offset', 0, type=int)

    # Enforce limits
    if limit > 200:
        limit = 200
    if limit < 1:
        limit = 50
    if offset < 0:
        offset = 0

    query = ShipmentHistory.query

    if status_filter:
        if status_filter not in STATUSES:
            return jsonify({'error': 'Invalid status filter'}), 400
        query = query.filter(ShipmentHistory.status == status_filter)

    if days_filter and days_filter > 0:
        cutoff_date = datetime.utcnow() - timedelta(days=days_filter)
        query = query.filter(ShipmentHistory.started_at >= cutoff_date)

    total_count = query.count()

    records = query.order_by(
        ShipmentHistory.started_at.desc(),
        ShipmentHistory.id.desc()
    ).limit(limit).offset(offset).all()

    return jsonify({
        'records': [_serialize(record) for record in records],
        'total': total_count,
        'limit': limit,
        'offset': offset
    })


@bp.route('/<int:history_id>', methods=['GET'])
def get_history_detail(history_id):
    """
    Get a single shipment run, including logs and duration.
    """
    record = db.get_or_404(ShipmentHistory, history_id)

    duration_seconds = None
    if record.completed_at:
        duration_seconds = int((record.completed_at - record.started_at).total_seconds())

    data = _serialize(record, include_logs=True)
    data['duration_seconds'] = duration_seconds
    return jsonify(data)


@bp.route('/<int:history_id>/logs', methods=['GET'])
def get_history_logs(history_id):
    record = db.get_or_404(ShipmentHistory, history_id)

    return jsonify({
        'id': record.id,
        'status': record.status,
        'logs': record.logs or 'No logs available'
    })


@bp.route('/summary', methods=['GET'])
def get_history_summary():
    """
    Get summary statistics for shipment history.

    Query params:
        - days: Calculate summary for last N days (default: 30, max: 365)

    Returns:
        JSON with counts per status, success rate and the most recent run
    """
    days = request.args.get('days', 30, type=int)
    if days < 1:
        days = 30
    if days > 365:
        days = 365

    cutoff_date = datetime.utcnow() - timedelta(days=days)
    query = ShipmentHistory.query.filter(ShipmentHistory.started_at >= cutoff_date)

    counts = {status: query.filter(ShipmentHistory.status == status).count() for status in STATUSES}

    # Skipped runs succeeded: the archive was already shipped
    succeeded = counts['uploaded'] + counts['skipped']
    completed = succeeded + counts['failed']
    success_rate = round((succeeded / completed * 100) if completed > 0 else 0, 1)

    recent = ShipmentHistory.query.order_by(
        ShipmentHistory.started_at.desc(),
        ShipmentHistory.id.desc()
    ).first()

    recent_info = None
    if recent:
        recent_info = {
            'status': recent.status,
            'target_key': recent.target_key,
            'started_at': _isoformat(recent.started_at)
        }

    return jsonify({
        'days': days,
        'total_runs': query.count(),
        'running': counts['running'],
        'uploaded': counts['uploaded'],
        'skipped': counts['skipped'],
        'failed': counts['failed'],
        'success_rate': success_rate,
        'most_recent': recent_info
    })


@bp.route('/cleanup', methods=['POST'])
def cleanup_old_history():
    """
    Delete old shipment history records.

    Request body:
        - days: Delete records older than N days (required, at least 30)

    Returns:
        JSON with number of records deleted
    """
    data = request.get_json(silent=True) or {}

    days = data.get('days')
    if not days:
        return jsonify({'error': 'days parameter is required'}), 400
    if not isinstance(days, int) or days < 30:
        return jsonify({'error': 'Cannot delete records newer than 30 days'}), 400

    cutoff_date = datetime.utcnow() - timedelta(days=days)

    old_records = ShipmentHistory.query.filter(
        ShipmentHistory.started_at < cutoff_date
    ).all()

    count = len(old_records)
    for record in old_records:
        db.session.delete(record)
    db.session.commit()

    return jsonify({
        'message': f'Deleted {count} old shipment history records',
        'deleted_count': count
    })
