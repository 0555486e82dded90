from datetime import datetime
from shipper import db


class ShipmentHistory(db.Model):
    """Shipment run history and logs"""
    __tablename__ = 'shipment_history'

    id = db.Column(db.Integer, primary_key=True)
    status = db.Column(db.String(20), nullable=False)  # running, uploaded, skipped, failed
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    completed_at = db.Column(db.DateTime)
    archive_name = db.Column(db.String(500))
    archive_size_bytes = db.Column(db.BigInteger)
    target_key = db.Column(db.String(1024))
    cumulative_remote_bytes = db.Column(db.BigInteger)  # Remote total before this run's upload
    evicted_key = db.Column(db.String(1024))
    eviction_error = db.Column(db.Text)
    failed_step = db.Column(db.String(20))  # config, scan, catalog, upload
    error_message = db.Column(db.Text)
    logs = db.Column(db.Text)  # Detailed execution logs

    def __repr__(self):
        return f'<ShipmentHistory id={self.id} status={self.status} key={self.target_key}>'
