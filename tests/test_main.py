import json

import pandas as pd

from main import main


def test_main_profiles_file(tmp_path, capsys):
    path = tmp_path / "orders.csv"
    pd.DataFrame({"id": [1, 1, 2], "name": ["a", "b", "c"]}).to_csv(path, index=False)

    status = main([str(path), "-k", "id", "--sample-limit", "1", "--engine", "pandas"])

    assert status == 0
    data = json.loads(capsys.readouterr().out)
    assert data["total_count"] == 3
    assert data["duplicate_count"] == 2
    assert len(data["sample"]) == 1


def test_main_reports_schema_error(tmp_path, capsys):
    path = tmp_path / "orders.csv"
    pd.DataFrame({"id": [1]}).to_csv(path, index=False)

    status = main([str(path), "-k", "sku"])

    assert status == 2
    assert capsys.readouterr().out == ""


def test_main_profiles_table(sqlite_engine, orders_table, capsys):
    url = sqlite_engine.url.render_as_string(hide_password=False)

    status = main(["--db-url", url, "--table", "orders", "-k", "order_id", "--order-by", "pk"])

    assert status == 0
    data = json.loads(capsys.readouterr().out)
    assert data["duplicate_count"] == 5
    assert data["sample"][0]["record"]["pk"] == 0


def test_main_rejects_negative_sample_limit(tmp_path, capsys):
    path = tmp_path / "orders.csv"
    pd.DataFrame({"id": [1, 1]}).to_csv(path, index=False)

    status = main([str(path), "-k", "id", "--sample-limit", "-1"])

    assert status == 2
    assert capsys.readouterr().out == ""


def test_main_rejects_unsupported_file_format(tmp_path, capsys):
    path = tmp_path / "orders.txt"
    path.write_text("id\n1\n")

    status = main([str(path), "-k", "id"])

    assert status == 2
    assert capsys.readouterr().out == ""
