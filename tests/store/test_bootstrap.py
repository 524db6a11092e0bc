from pathlib import Path

from src.attendance_manager.attendance_manager.store.bootstrap import _strip_create_db_and_use, iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_schema_yields_only_the_documents_table():
    statements = list(iter_sql_statements(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8"))))

    assert len(statements) == 1
    assert statements[0].startswith("CREATE TABLE IF NOT EXISTS documents")
    assert "'$.date'" in statements[0]


def test_semicolons_inside_quotes_do_not_split():
    sql = "-- comment; ignored\nINSERT INTO t VALUES ('a;b');\nSELECT 1"
    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", "SELECT 1"]
