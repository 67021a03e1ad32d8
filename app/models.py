# ==============================================================================
# app/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# Column names follow the processor-export tables, which the engine reads
# directly through its field aliases.
# ==============================================================================

from datetime import datetime
from app import db
from app.calculator.rates import normalize_rate


class Location(db.Model):
    """
    A merchant site. `account_id` links it to processor transactions and is
    neither required nor unique.
    """
    __tablename__ = 'locations'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(256), nullable=False)
    account_id = db.Column(db.String(64), index=True, nullable=True)

    assignments = db.relationship('LocationAgentAssignment', backref='location', lazy='dynamic',
                                  cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Location {self.id}: {self.name} ({self.account_id})>'


class LocationAgentAssignment(db.Model):
    """
    An agent's rate at a location. `commission_rate` keeps whatever encoding
    the row was written with; read it through `normalized_rate`.
    """
    __tablename__ = 'location_agent_assignments'
    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'), nullable=False, index=True)
    agent_name = db.Column(db.String(128), nullable=False, index=True)
    commission_rate = db.Column(db.Float, default=0)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def normalized_rate(self):
        return normalize_rate(self.commission_rate)

    def __repr__(self):
        return f'<LocationAgentAssignment {self.agent_name} @ {self.location_id}: {self.commission_rate}>'


class Transaction(db.Model):
    """
    One processor-reported volume line. `volume` is bank card volume,
    `debit_volume` is debit card volume and `agent_payout` is the net revenue
    already computed by the ingestion step.
    """
    __tablename__ = 'transactions'
    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.String(64), index=True, nullable=True)
    processor = db.Column(db.String(64))
    transaction_date = db.Column(db.Date, index=True)
    volume = db.Column(db.Float, default=0)
    debit_volume = db.Column(db.Float, default=0)
    agent_payout = db.Column(db.Float, default=0)

    def __repr__(self):
        return f'<Transaction {self.id}: {self.account_id} {self.transaction_date}>'
