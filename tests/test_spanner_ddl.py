import pytest

from schemashift.spanner_ddl import drop_statements, migration_statements


@pytest.mark.parametrize(
    "multi_statement, expected",
    [
        (
            "CREATE TABLE table_name (id STRING(255) NOT NULL) PRIMARY KEY (id)",
            ["CREATE TABLE table_name (id STRING(255) NOT NULL) PRIMARY KEY (id)"],
        ),
        (
            "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY (id)",
            ["CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY (id)"],
        ),
        (
            "CREATE TABLE table_name (id STRING(255) NOT NULL) PRIMARY KEY (id);",
            ["CREATE TABLE table_name (id STRING(255) NOT NULL) PRIMARY KEY (id)"],
        ),
        (
            "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY (id);",
            ["CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY (id)"],
        ),
        (
            "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY(id);\n\n"
            "CREATE INDEX table_name_id_idx ON table_name (id);",
            [
                "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY(id)",
                "CREATE INDEX table_name_id_idx ON table_name (id)",
            ],
        ),
        (
            "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY(id);\n\n"
            "CREATE INDEX table_name_id_idx ON table_name (id)",
            [
                "CREATE TABLE table_name (\n\tid STRING(255) NOT NULL,\n) PRIMARY KEY(id)",
                "CREATE INDEX table_name_id_idx ON table_name (id)",
            ],
        ),
    ],
    ids=[
        "single statement, single line, no semicolon",
        "single statement, multi line, no semicolon",
        "single statement, single line, with semicolon",
        "single statement, multi line, with semicolon",
        "multi statement, with trailing semicolon",
        "multi statement, no trailing semicolon",
    ],
)
def test_multistatement_split(multi_statement, expected):
    assert migration_statements(multi_statement.encode("utf-8")) == expected
    assert migration_statements(multi_statement) == expected


def test_empty_statements_are_dropped():
    assert migration_statements(b" ; ;\n") == []


def test_drop_statements_reverse_order():
    schema = [
        "CREATE TABLE Accounts (\n  Id INT64 NOT NULL,\n) PRIMARY KEY(Id)",
        "CREATE INDEX Accounts_idx ON Accounts (Id)",
        "CREATE TABLE Orders (Id INT64 NOT NULL) PRIMARY KEY(Id)",
    ]
    assert drop_statements(schema) == [
        "DROP TABLE Orders",
        "DROP INDEX Accounts_idx",
        "DROP TABLE Accounts",
    ]


def test_drop_statements_unique_index_and_unmatched():
    schema = [
        "CREATE UNIQUE INDEX Users_email ON Users (Email)",
        "ALTER TABLE Users ADD COLUMN Age INT64",
    ]
    assert drop_statements(schema) == ["DROP INDEX Users_email"]


def test_drop_statements_empty():
    assert drop_statements([]) == []