import json

import cli


def test_overview(capsys):
    assert cli.main(["overview"]) == 0
    out = capsys.readouterr().out
    assert "Partner Program Overview (Realistic)" in out
    assert "LTV:CAC Ratio" in out
    assert "Balanced plan" in out


def test_overview_with_scenario_and_currency(capsys):
    assert cli.main(["overview", "--scenario", "pessimistic", "--currency", "usd"]) == 0
    out = capsys.readouterr().out
    assert "(Pessimistic)" in out
    assert "USD" in out
    assert "Focus on retention" in out


def test_invalid_override_is_reported(capsys):
    assert cli.main(["overview", "--churn-rate", "150"]) == 1
    assert "Monthly Churn Rate must be between 0% and 100%" in capsys.readouterr().out


def test_sensitivity(capsys):
    assert cli.main(["sensitivity", "churn_rate"]) == 0
    out = capsys.readouterr().out
    assert "46.00" in out
    assert "51.00" not in out
    assert "nearest sample" in out


def test_sensitivity_custom_range(capsys):
    assert cli.main(["sensitivity", "partnerCount", "--min", "10", "--max", "50", "--step", "20"]) == 0
    out = capsys.readouterr().out
    assert "Range: 10.0 to 50.0 step 20.0" in out


def test_sensitivity_errors(capsys):
    assert cli.main(["sensitivity", "margin"]) == 1
    assert "Unknown input field" in capsys.readouterr().out
    assert cli.main(["sensitivity", "churn_rate", "--step", "0"]) == 1
    assert cli.main(["sensitivity"]) == 1


def test_tornado_scenarios_params(capsys):
    assert cli.main(["tornado", "--swing", "10"]) == 0
    assert "Swing: ±10%" in capsys.readouterr().out
    assert cli.main(["scenarios"]) == 0
    assert "Optimistic" in capsys.readouterr().out
    assert cli.main(["params"]) == 0
    assert "avg_referrals_per_partner" in capsys.readouterr().out


def test_export_and_import_json(tmp_path, capsys):
    path = tmp_path / "state.json"
    assert cli.main(["export", "json", "--output", str(path), "--churn-rate", "12"]) == 0
    doc = json.loads(path.read_text())
    assert doc["version"] == "1.0"
    assert doc["inputs"]["churnRate"] == 12

    assert cli.main(["import", str(path)]) == 0
    assert "Imported" in capsys.readouterr().out

    assert cli.main(["overview", "--state", str(path)]) == 0


def test_export_csv(tmp_path):
    assert cli.main(["export", "csv", "--output", str(tmp_path / "report.csv")]) == 0
    out_dir = tmp_path / "report"
    for name in ("metrics.csv", "profit_timeline.csv", "tornado.csv", "scenarios.csv"):
        assert (out_dir / name).exists()


def test_import_rejects_bad_document(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"inputs": {}}))
    assert cli.main(["import", str(path)]) == 1
    assert "missing required fields: version" in capsys.readouterr().out
    assert cli.main(["overview", "--state", str(path)]) == 1


def test_import_rejects_invalid_inputs(tmp_path, capsys):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"version": "1.0", "inputs": {"partnerCount": -50, "churnRate": 400}}))
    assert cli.main(["import", str(path)]) == 1
    out = capsys.readouterr().out
    assert "Invalid inputs:" in out
    assert "Imported" not in out


def test_export_to_unwritable_path(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    assert cli.main(["export", "json", "--output", str(blocker / "state.json")]) == 1
    assert cli.main(["export", "csv", "--output", str(blocker / "report.csv")]) == 1
    assert "could not export" in capsys.readouterr().out
