from datetime import date
from flask import current_app
from app import db
from app.models import Location, LocationAgentAssignment, Transaction

# (name, account_id, [(agent_name, stored commission_rate)])
# Rates mix the three stored encodings found in older rows.
DEMO_LOCATIONS = [
    ('Brick & Brew', '1058', [('Jane Cooper', 0.75), ('Merchant Hero', 0)]),
    ('Harbor Laundromat', '2210', [('Marcus Lee', 50), ('Jane Cooper', 2500), ('Merchant Hero', 0)]),
    ('Sunset Vape', '3307', [('Marcus Lee', 0.5), ('Merchant Hero', 0)]),
    ('Closed Kiosk', None, [('Jane Cooper', 0.25)]),
]

# (account_id, processor, transaction_date, volume, debit_volume, agent_payout)
DEMO_TRANSACTIONS = [
    ('1058', 'TRNXN', date(2025, 6, 30), 120000.00, 57088.88, 2656.33),
    ('2210', 'Maverick', date(2025, 6, 30), 48000.00, 12000.00, 900.00),
    ('3307', 'Green Payments', date(2025, 6, 30), 0, 0, 0),
    ('1058', 'TRNXN', date(2025, 7, 31), 110500.00, 50210.40, 2410.66),
    ('2210', 'Maverick', date(2025, 7, 31), 51000.00, 9800.00, 912.00),
    ('3307', 'Green Payments', date(2025, 7, 31), 8200.00, 1300.00, 142.50),
]

def seed_data():
    """Populates the database with demo data. Existing rows are left untouched."""
    if Location.query.count() == 0:
        for name, account_id, agents in DEMO_LOCATIONS:
            location = Location(name=name, account_id=account_id)
            db.session.add(location)
            db.session.flush()
            for agent_name, rate in agents:
                db.session.add(LocationAgentAssignment(
                    location_id=location.id, agent_name=agent_name,
                    commission_rate=rate, is_active=True
                ))
            current_app.logger.info(f'Seeding location: {name}')

    if Transaction.query.count() == 0:
        current_app.logger.info('Seeding demo transactions...')
        for account_id, processor, tx_date, volume, debit, payout in DEMO_TRANSACTIONS:
            db.session.add(Transaction(
                account_id=account_id, processor=processor, transaction_date=tx_date,
                volume=volume, debit_volume=debit, agent_payout=payout
            ))

    db.session.commit()
    current_app.logger.info('Seeding complete.')
