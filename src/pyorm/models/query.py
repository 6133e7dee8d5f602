"""
Query builder for database operations.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type, Union, TYPE_CHECKING

from pyorm.database.connection import DatabaseConnection
from pyorm.exceptions import InvalidArgumentError
from pyorm.types import (
    BooleanJoin, JoinClause, JoinType, OrderClause, OrderDirection, Paginator, WhereClause
)

if TYPE_CHECKING:
    from pyorm.models.base import Model


# Marks "no value argument" so that where(col, '=', None) stays expressible
_MISSING = object()

# Rendered for where_in() with an empty value set
IMPOSSIBLE_PREDICATE = "0 = 1"


class QueryBuilder:
    """
    Fluent builder for a single SELECT, INSERT, UPDATE or DELETE statement.

    Values are always sent to the connection as positional ``?`` bindings;
    only table names, column names, operators and keywords are written into
    the SQL text. Column names, operators and join expressions are emitted
    verbatim and must never come from user input.

    A builder created with ``model_class`` hydrates rows into instances of
    that model; a plain builder returns row dicts.

    Builders keep mutable state and are not thread-safe.
    """

    def __init__(self,
                 connection: DatabaseConnection,
                 table: str,
                 model_class: Optional[Type['Model']] = None,
                 primary_key: str = 'id'):
        self.connection = connection
        self.table = table
        self.model_class = model_class
        self.primary_key = primary_key
        self._reset_state()

    def _reset_state(self) -> None:
        self._columns: List[str] = ['*']
        self._wheres: List[WhereClause] = []
        self._joins: List[JoinClause] = []
        self._orders: List[OrderClause] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._bindings: List[Any] = []
        self._with: List[str] = []

    def copy(self) -> 'QueryBuilder':
        """Create a copy of the query builder"""
        new_builder = QueryBuilder(self.connection, self.table, self.model_class, self.primary_key)
        new_builder._columns = self._columns.copy()
        new_builder._wheres = self._wheres.copy()
        new_builder._joins = self._joins.copy()
        new_builder._orders = self._orders.copy()
        new_builder._limit = self._limit
        new_builder._offset = self._offset
        new_builder._bindings = self._bindings.copy()
        new_builder._with = self._with.copy()
        return new_builder

    # ------------------------------------------------------------------
    # Clause composition
    # ------------------------------------------------------------------

    def select(self, *columns: Union[str, Sequence[str]]) -> 'QueryBuilder':
        """Replace the selected columns; accepts a list or varargs"""
        if len(columns) == 1 and not isinstance(columns[0], str):
            columns = tuple(columns[0])
        self._columns = list(columns) or ['*']
        return self

    def where(self, column: str, operator: Any, value: Any = _MISSING) -> 'QueryBuilder':
        """Add an AND condition; where(col, value) means where(col, '=', value)"""
        return self._add_where(BooleanJoin.AND, column, operator, value)

    def or_where(self, column: str, operator: Any, value: Any = _MISSING) -> 'QueryBuilder':
        """Add an OR condition"""
        return self._add_where(BooleanJoin.OR, column, operator, value)

    def _add_where(self, boolean: BooleanJoin, column: str, operator: Any, value: Any) -> 'QueryBuilder':
        if value is _MISSING:
            value, operator = operator, '='
        operator = str(operator)
        if operator.upper() == 'IN':
            # A lone scalar is a one-element set, never a sequence of characters
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                value = [value]
            operator, value = 'IN', list(value)
        self._wheres.append(WhereClause(boolean, column, operator, value))
        return self

    def where_in(self, column: str, values: Sequence[Any]) -> 'QueryBuilder':
        """Add an AND column IN (...) condition; an empty list matches nothing"""
        self._wheres.append(WhereClause(BooleanJoin.AND, column, 'IN', list(values)))
        return self

    def where_null(self, column: str) -> 'QueryBuilder':
        self._wheres.append(WhereClause(BooleanJoin.AND, column, 'IS NULL'))
        return self

    def where_not_null(self, column: str) -> 'QueryBuilder':
        self._wheres.append(WhereClause(BooleanJoin.AND, column, 'IS NOT NULL'))
        return self

    def join(self, table: str, first: str, operator: str, second: str) -> 'QueryBuilder':
        """Add INNER JOIN; first and second are column references, not values"""
        self._joins.append(JoinClause(JoinType.INNER, table, first, operator, second))
        return self

    def left_join(self, table: str, first: str, operator: str, second: str) -> 'QueryBuilder':
        """Add LEFT JOIN"""
        self._joins.append(JoinClause(JoinType.LEFT, table, first, operator, second))
        return self

    def order_by(self, column: str, direction: Union[str, OrderDirection] = 'ASC') -> 'QueryBuilder':
        """Add order by clause; direction must be ASC or DESC in any case"""
        try:
            parsed = OrderDirection.parse(direction)
        except ValueError:
            raise InvalidArgumentError(
                'Order direction must be ASC or DESC',
                details={'direction': str(direction)}
            ) from None
        self._orders.append(OrderClause(column, parsed))
        return self

    def limit(self, count: int) -> 'QueryBuilder':
        self._limit = int(count)
        return self

    def offset(self, count: int) -> 'QueryBuilder':
        self._offset = int(count)
        return self

    def with_(self, *relations: Union[str, Sequence[str]]) -> 'QueryBuilder':
        """Record relation names to eager load; advisory only"""
        for relation in relations:
            if isinstance(relation, str):
                self._with.append(relation)
            else:
                self._with.extend(relation)
        return self

    def load(self, relation: str) -> 'QueryBuilder':
        self._with.append(relation)
        return self

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_table(self) -> str:
        return self.table

    def get_with(self) -> List[str]:
        """Get eager loading relationships"""
        return list(self._with)

    def get_columns(self) -> List[str]:
        return list(self._columns)

    def get_bindings(self) -> List[Any]:
        """Bindings produced by the most recent render"""
        return list(self._bindings)

    def get_wheres(self) -> List[WhereClause]:
        return list(self._wheres)

    def to_sql(self) -> Tuple[str, List[Any]]:
        """Render the SELECT statement without executing it"""
        sql = self._build_select_sql()
        return sql, list(self._bindings)

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def get(self) -> List[Any]:
        """Execute the SELECT and return rows (or model instances)"""
        sql = self._build_select_sql()
        rows = self.connection.execute(sql, self._bindings).fetch_all()
        return self._hydrate(rows)

    def first(self) -> Optional[Any]:
        """Return the first matching row or None"""
        results = self.copy().limit(1).get()
        return results[0] if results else None

    def find(self, id: Any) -> Optional[Any]:
        """Find a record by primary key"""
        return self.where(self.primary_key, id).first()

    def count(self) -> int:
        """Return count of matching records"""
        original_columns = self._columns
        self._columns = ['COUNT(*) AS count']
        try:
            sql = self._build_select_sql()
            row = self.connection.execute(sql, self._bindings).fetch_one()
        finally:
            self._columns = original_columns
        return int(row['count']) if row else 0

    def exists(self) -> bool:
        """Check if any records match the query"""
        return self.count() > 0

    def paginate(self, page: int = 1, per_page: int = 15) -> Paginator:
        """Return one page of results together with the total count"""
        if page < 1 or per_page < 1:
            raise InvalidArgumentError(
                'Page and page size must be positive',
                details={'page': page, 'per_page': per_page}
            )
        total = self.count()
        items = self.copy().limit(per_page).offset((page - 1) * per_page).get()
        return Paginator(items=items, total=total, page=page, per_page=per_page)

    def insert(self, data: Dict[str, Any]) -> Any:
        """Insert one row and return its generated primary key"""
        if not data:
            raise InvalidArgumentError('Insert data cannot be empty')

        columns = list(data.keys())
        placeholders = ', '.join(['?'] * len(columns))
        sql = f"INSERT INTO {self.table} ({', '.join(columns)}) VALUES ({placeholders})"

        self._bindings = list(data.values())
        self.connection.execute(sql, self._bindings)
        return self.connection.last_insert_id()

    def update(self, data: Dict[str, Any]) -> int:
        """
        Update matching rows and return the affected row count.

        Without any where() conditions this updates every row in the table.
        """
        if not data:
            raise InvalidArgumentError('Update data cannot be empty')

        sets = ', '.join(f"{column} = ?" for column in data)
        bindings = list(data.values())
        sql = f"UPDATE {self.table} SET {sets}"

        if self._wheres:
            where_sql, where_bindings = self._build_where_clause()
            sql += f" WHERE {where_sql}"
            bindings.extend(where_bindings)

        self._bindings = bindings
        return self.connection.execute(sql, bindings).row_count()

    def delete(self) -> int:
        """
        Delete matching rows and return the affected row count.

        Without any where() conditions this deletes every row in the table.
        """
        sql = f"DELETE FROM {self.table}"
        bindings: List[Any] = []

        if self._wheres:
            where_sql, bindings = self._build_where_clause()
            sql += f" WHERE {where_sql}"

        self._bindings = bindings
        return self.connection.execute(sql, bindings).row_count()

    def reset(self) -> 'QueryBuilder':
        """Reset query builder state, keeping the table"""
        self._reset_state()
        return self

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _build_select_sql(self) -> str:
        """Build SELECT SQL and store its bindings"""
        sql = f"SELECT {', '.join(self._columns)} FROM {self.table}"

        for join in self._joins:
            sql += f" {join.kind.value} JOIN {join.table} ON {join.first} {join.operator} {join.second}"

        bindings: List[Any] = []
        if self._wheres:
            where_sql, bindings = self._build_where_clause()
            sql += f" WHERE {where_sql}"
        self._bindings = bindings

        if self._orders:
            sql += " ORDER BY " + ', '.join(
                f"{order.column} {order.direction.value}" for order in self._orders
            )

        if self._limit is not None:
            sql += f" LIMIT {self._limit}"

        if self._offset is not None:
            sql += f" OFFSET {self._offset}"

        return sql

    def _build_where_clause(self) -> Tuple[str, List[Any]]:
        """Render WHERE conditions; bindings follow placeholder order exactly"""
        fragments: List[str] = []
        bindings: List[Any] = []

        for index, condition in enumerate(self._wheres):
            clause = '' if index == 0 else f" {condition.boolean.value} "

            if condition.operator == 'IN':
                values = condition.value
                if values:
                    placeholders = ', '.join(['?'] * len(values))
                    clause += f"{condition.column} IN ({placeholders})"
                    bindings.extend(values)
                else:
                    clause += IMPOSSIBLE_PREDICATE
            elif condition.operator in ('IS NULL', 'IS NOT NULL'):
                clause += f"{condition.column} {condition.operator}"
            else:
                clause += f"{condition.column} {condition.operator} ?"
                bindings.append(condition.value)

            fragments.append(clause)

        return ''.join(fragments), bindings

    def _hydrate(self, rows: List[Dict[str, Any]]) -> List[Any]:
        if self.model_class is None:
            return rows
        return [self.model_class.new_from_row(row, connection=self.connection) for row in rows]

    def __repr__(self) -> str:
        sql, bindings = self.to_sql()
        return f"<QueryBuilder {sql!r} {bindings!r}>"
