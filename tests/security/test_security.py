"""
Security tests for pyorm: values must never reach the SQL text
"""
import pytest

from pyorm import InvalidArgumentError, QueryBuilder
from fixtures.models import User

PAYLOAD = "'; DROP TABLE users; --"


@pytest.mark.security
class TestSqlInjection:
    """Injection attempts through value positions"""

    def test_where_value_cannot_alter_schema(self, db, seeded_users):
        """Test a malicious where value is bound, not interpolated"""
        assert User.where('name', PAYLOAD).get() == []

        sql, bindings = db.last_statement
        assert PAYLOAD not in sql
        assert bindings == [PAYLOAD]

        # Table still there and intact
        assert User.count() == 2

    def test_payload_stored_verbatim(self, db):
        """Test a malicious value round-trips as plain data"""
        user = User.create(name=PAYLOAD, email='x@example.com')
        assert User.find(user.id).name == PAYLOAD
        assert User.where('name', PAYLOAD).count() == 1

    def test_where_in_values_are_bound(self, db, seeded_users):
        """Test every IN element is a binding"""
        QueryBuilder(db, 'users').where_in('name', ['Jane', PAYLOAD]).get()
        sql, bindings = db.last_statement
        assert sql == "SELECT * FROM users WHERE name IN (?, ?)"
        assert bindings == ['Jane', PAYLOAD]
        assert User.count() == 2

    def test_update_values_are_bound(self, db, seeded_users):
        """Test SET values are bindings too"""
        jane, _ = seeded_users
        User.update_by_id(jane.id, {'status': PAYLOAD})
        assert PAYLOAD not in db.last_statement[0]
        assert User.find(jane.id).status == PAYLOAD
        assert User.count() == 2

    def test_order_direction_is_whitelisted(self, db):
        """Test direction is the only order token checked against a list"""
        with pytest.raises(InvalidArgumentError):
            User.query().order_by('name', 'ASC; DROP TABLE users')
        assert db.statements == []
