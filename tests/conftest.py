"""Shared test fixtures for SkillMatch."""

import itertools
from collections import defaultdict

import pytest

from skillmatch.config import MatchingConfig, SkillMatchConfig
from skillmatch.dal import DataService
from skillmatch.models import Job
from skillmatch.rest.errors import ApiError
from skillmatch.rest.query import Query
from skillmatch.session import SessionContext

_MISSING = object()


class FakeRestClient:
    """In-memory stand-in for ``RestClient`` with PostgREST-like semantics.

    Supports eq/ilike/in filters, or-groups, embeds (``!inner`` included),
    ordering, limits, unique keys, upsert merging and foreign keys. Every call
    is recorded in ``calls`` as ``(method, table, query_or_row)``.
    """

    UNIQUE_KEYS = {
        "applications": ("job_id", "applicant_id"),
        "saved_jobs": ("user_id", "job_id"),
        "recently_viewed": ("user_id", "job_id"),
    }
    FOREIGN_KEYS = {
        "messages": ("application_id", "applications"),
    }

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.failures = {}
        self.session = SessionContext()
        self.base_url = "https://backend.test"
        self._ids = itertools.count(1)

    # --- Test helpers ---

    def seed(self, table, *rows):
        for row in rows:
            row = dict(row)
            row.setdefault("id", f"{table}-{next(self._ids)}")
            self.tables[table].append(row)

    def fail(self, method, table, exc):
        self.failures[(method, table)] = exc

    def calls_to(self, method, table):
        return [c for c in self.calls if c[0] == method and c[1] == table]

    def _record(self, method, table, payload):
        self.calls.append((method, table, payload))
        exc = self.failures.get((method, table))
        if exc is not None:
            raise exc

    # --- Evaluation ---

    def _embed(self, row, query):
        row = dict(row)
        for embed in query.embeds:
            target = next(
                (r for r in self.tables[embed.table] if str(r.get("id")) == str(row.get(embed.fk))),
                None,
            )
            if target is None:
                if embed.inner:
                    return None
                row[embed.alias] = None
                continue
            if embed.columns == ("*",):
                row[embed.alias] = dict(target)
            else:
                row[embed.alias] = {c: target.get(c) for c in embed.columns}
        return row

    @staticmethod
    def _value(row, column):
        if "." in column:
            alias, col = column.split(".", 1)
            nested = row.get(alias)
            return nested.get(col, _MISSING) if isinstance(nested, dict) else _MISSING
        return row.get(column, _MISSING)

    def _test(self, row, f):
        value = self._value(row, f.column)
        if value is _MISSING or value is None:
            return False
        if f.op == "eq":
            return str(value) == str(f.value)
        if f.op == "ilike":
            return str(f.value).lower() in str(value).lower()
        if f.op == "in":
            return str(value) in {str(v) for v in f.value}
        raise AssertionError(f"unsupported op {f.op}")

    def _matches(self, row, query):
        if not all(self._test(row, f) for f in query.filters):
            return False
        return all(any(self._test(row, f) for f in g.filters) for g in query.or_groups)

    def _filtered(self, query):
        rows = (self._embed(r, query) for r in self.tables[query.table])
        return [r for r in rows if r is not None and self._matches(r, query)]

    def _project(self, row, query):
        if "*" in query.columns:
            return row
        keep = {c for c in query.columns if c != "count"} | {e.alias for e in query.embeds}
        return {k: v for k, v in row.items() if k in keep}

    # --- RestClient interface ---

    def select(self, query: Query):
        self._record("select", query.table, query)
        rows = self._filtered(query)
        for order in reversed(query.ordering):
            rows.sort(key=lambda r: str(r.get(order.column) or ""), reverse=order.desc)
        if query.row_limit is not None:
            rows = rows[: query.row_limit]
        return [self._project(r, query) for r in rows]

    def count(self, query: Query):
        self._record("count", query.table, query)
        return len(self._filtered(query))

    def insert(self, table, row, *, on_conflict=None):
        self._record("insert", table, row)
        row = dict(row)

        fk = self.FOREIGN_KEYS.get(table)
        if fk:
            column, parent = fk
            if not any(str(r.get("id")) == str(row.get(column)) for r in self.tables[parent]):
                raise ApiError(
                    f'insert or update on table "{table}" violates foreign key constraint',
                    status_code=409,
                    code="23503",
                )

        key = self.UNIQUE_KEYS.get(table)
        if key:
            existing = next(
                (r for r in self.tables[table] if all(r.get(k) == row.get(k) for k in key)),
                None,
            )
            if existing is not None:
                if on_conflict:
                    existing.update(row)
                    return [dict(existing)]
                raise ApiError(
                    f'duplicate key value violates unique constraint "{table}_{"_".join(key)}_key"',
                    status_code=409,
                    code="23505",
                )

        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables[table].append(row)
        return [dict(row)]

    def update(self, query: Query, values):
        self._record("update", query.table, query)
        updated = []
        for row in self.tables[query.table]:
            if self._matches(row, query):
                row.update(values)
                updated.append(dict(row))
        return updated

    def delete(self, query: Query):
        self._record("delete", query.table, query)
        self.tables[query.table] = [
            r for r in self.tables[query.table] if not self._matches(r, query)
        ]


@pytest.fixture
def fake_client():
    return FakeRestClient()


@pytest.fixture
def config():
    return SkillMatchConfig()


@pytest.fixture
def service(fake_client, config):
    return DataService(fake_client, config)


@pytest.fixture
def matching_config():
    return MatchingConfig()


@pytest.fixture
def marketplace(fake_client):
    """Two employers, three seekers, four jobs and a few applications."""
    fake_client.seed(
        "profiles",
        {"id": "emp-1", "role": "employer", "company_name": "Acme Corp"},
        {"id": "emp-2", "role": "EMPLOYER", "company_name": "Globex"},
        {
            "id": "seeker-1",
            "role": "seeker",
            "full_name": "Ada Lovelace",
            "headline": "Backend Developer",
            "skills": ["Python", "SQL", "Docker"],
            "avatar_url": "https://cdn.test/ada.jpg",
        },
        {
            "id": "seeker-2",
            "role": "seeker",
            "full_name": "Grace Hopper",
            "headline": "Data Analyst",
            "skills": ["SQL", "Excel"],
        },
    )
    fake_client.seed(
        "jobs",
        {
            "id": "job-1",
            "employer_id": "emp-1",
            "title": "Backend Developer",
            "company_name": "Acme Corp",
            "location": "Berlin, Germany",
            "skills": ["Python", "SQL"],
            "status": "active",
            "created_at": "2025-01-04T09:00:00+00:00",
        },
        {
            "id": "job-2",
            "employer_id": "emp-1",
            "title": "Frontend Engineer",
            "company_name": "Acme Corp",
            "location": "Remote",
            "skills": ["React", "TypeScript"],
            "status": "closed",
            "created_at": "2025-01-03T09:00:00+00:00",
        },
        {
            "id": "job-3",
            "employer_id": "emp-2",
            "title": "Data Analyst",
            "company_name": "Globex",
            "location": "berlin",
            "description": "Reporting with SQL and Excel.",
            "skills": [],
            "status": "active",
            "created_at": "2025-01-02T09:00:00+00:00",
        },
        {
            "id": "job-4",
            "employer_id": "emp-2",
            "title": "Warehouse Associate",
            "company_name": "Globex",
            "location": "Munich",
            "skills": ["Forklift"],
            "status": "active",
            "created_at": "2025-01-01T09:00:00+00:00",
        },
    )
    fake_client.seed(
        "applications",
        {
            "id": "app-1",
            "job_id": "job-1",
            "applicant_id": "seeker-1",
            "status": "pending",
            "created_at": "2025-01-05T10:00:00+00:00",
        },
        {
            "id": "app-2",
            "job_id": "job-1",
            "applicant_id": "seeker-2",
            "status": "shortlisted",
            "created_at": "2025-01-06T10:00:00+00:00",
        },
        {
            "id": "app-3",
            "job_id": "job-3",
            "applicant_id": "seeker-2",
            "status": "interview",
            "created_at": "2025-01-06T11:00:00+00:00",
        },
    )
    return fake_client


@pytest.fixture
def react_job():
    return Job(id="j-react", title="Frontend Developer", skills=["React", "SQL"])


@pytest.fixture
def text_only_job():
    return Job(
        id="j-text",
        title="Software Engineer",
        description="We build services in Java on AWS.",
        requirements=["3 years experience"],
    )
