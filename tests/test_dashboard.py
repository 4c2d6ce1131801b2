"""End-to-end tests for one dashboard load and its JSON payload."""

from bloodsugar.config import DashboardConfig
from bloodsugar.dashboard import ERROR_HINT, LoadState, build_dashboard, compute_dashboard, derive
from tests.conftest import SAMPLE_CSV, failing_client, mock_client


class TestBuildDashboard:
    def test_scenario_from_local_file(self, local_config):
        data = build_dashboard(local_config)
        assert data.state == LoadState.READY
        assert data.source == "local"
        assert len(data.records) == 3
        assert [r.display_label for r in data.readings] == ["Jan 1", "Jan 1 (14:00)"]
        assert data.stats.overall.average == 122.5
        assert len(data.fasting) == 1
        assert len(data.random) == 1

    def test_remote_source(self, missing_csv):
        config = DashboardConfig(sheet_id="abc", local_csv_path=missing_csv)
        with mock_client(text="date,sugarLevel,type\n2024-05-01,111,RANDOM\n") as client:
            data = build_dashboard(config, client=client)
        assert data.state == LoadState.READY
        assert data.source == "remote"
        assert data.stats.random.count == 1

    def test_row_with_extra_fields_still_counts(self, tmp_path):
        path = tmp_path / "comma.csv"
        path.write_text(
            "date,sugarLevel,type,time,notes\n"
            "2024-01-01,95,FASTING,07:30,\n"
            "2024-01-02,180,RANDOM,13:00,pizza, soda\n"
            "2024-01-03,99,FASTING,07:15,\n",
            encoding="utf-8",
        )
        data = build_dashboard(DashboardConfig(local_csv_path=path))
        assert [r.sugar_level for r in data.readings] == [95.0, 180.0, 99.0]
        assert data.stats.random.count == 1
        assert data.stats.random.max == 180.0
        assert [w.code for w in data.warnings] == ["TooManyFields"]

    def test_empty_file_is_no_data_not_error(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        data = build_dashboard(DashboardConfig(local_csv_path=path))
        assert data.state == LoadState.NO_DATA
        assert data.error is None
        assert data.stats.overall.count == 0
        assert data.stats.overall.average is None
        assert data.stats.fasting.average is None
        assert data.stats.random.average is None

    def test_all_rows_invalid_is_no_data(self, tmp_path):
        path = tmp_path / "zeros.csv"
        path.write_text("date,sugarLevel,type\n2024-01-01,0,FASTING\n2024-01-02,oops,RANDOM\n", encoding="utf-8")
        data = build_dashboard(DashboardConfig(local_csv_path=path))
        assert data.state == LoadState.NO_DATA
        assert len(data.records) == 2

    def test_both_sources_rejected_is_error(self, missing_csv):
        config = DashboardConfig(sheet_id="abc", local_csv_path=missing_csv)
        with failing_client() as client:
            data = build_dashboard(config, client=client)
        assert data.state == LoadState.ERROR
        assert "Google Sheets" in data.error
        assert str(missing_csv) in data.error
        assert data.readings == []

    def test_sample_file_loads(self):
        data = build_dashboard(DashboardConfig(local_csv_path=SAMPLE_CSV))
        assert data.state == LoadState.READY
        assert data.stats.overall.count == 10
        labels = [r.display_label for r in data.readings]
        assert len(labels) == len(set(labels))


def test_derive_is_pure(scenario_records):
    first = derive(scenario_records)
    second = derive(scenario_records)
    assert first == second


def test_every_state_is_reachable():
    assert [s.value for s in LoadState] == ["error", "no_data", "ready"]


class TestComputeDashboard:
    def test_ready_payload(self, local_config):
        payload = compute_dashboard(build_dashboard(local_config), view="bar", config=local_config)
        assert payload["state"] == "ready"
        assert payload["view"] == "bar"
        assert payload["hint"] is None
        assert payload["stats"]["overall"]["count"] == 2
        assert payload["stats_display"]["fasting"] == {"average": "95.0", "max": "95", "min": "95", "count": "1"}
        assert [r["display_label"] for r in payload["readings"]] == ["Jan 1", "Jan 1 (14:00)"]
        assert set(payload["charts"]) == {"main", "fasting", "random"}
        assert payload["reference"]["thresholds"]["diabetic_fasting"] == 126.0

    def test_main_chart_has_three_reference_lines(self, local_config):
        payload = compute_dashboard(build_dashboard(local_config), config=local_config)
        main = payload["charts"]["main"]
        rules = [layer for layer in main["layer"] if layer["mark"]["type"] == "rule"]
        assert len(rules) == 1
        labels = rules[0]["encoding"]["color"]["scale"]["domain"]
        assert labels == ["Normal Fasting (100)", "Pre-diabetic (140)", "Diabetic (200)"]

    def test_bar_view_uses_bar_mark(self, local_config):
        payload = compute_dashboard(build_dashboard(local_config), view="bar", config=local_config)
        marks = [layer["mark"]["type"] for layer in payload["charts"]["main"]["layer"]]
        assert "bar" in marks

    def test_unknown_view_falls_back_to_line(self, local_config):
        payload = compute_dashboard(build_dashboard(local_config), view="pie", config=local_config)
        assert payload["view"] == "line"

    def test_view_defaults_to_configured_chart_view(self, local_config):
        config = DashboardConfig(local_csv_path=local_config.local_csv_path, chart_view="bar")
        assert compute_dashboard(build_dashboard(config), config=config)["view"] == "bar"
        assert compute_dashboard(build_dashboard(config), view="pie", config=config)["view"] == "bar"

    def test_no_data_payload(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("date,sugarLevel,type,time,notes\n", encoding="utf-8")
        payload = compute_dashboard(build_dashboard(DashboardConfig(local_csv_path=path)))
        assert payload["state"] == "no_data"
        assert payload["message"]
        assert payload["charts"] == {}
        assert payload["stats_display"]["overall"]["average"] == "N/A"
        assert payload["stats_display"]["random"]["count"] == "0"

    def test_error_payload_has_hint(self, missing_csv):
        payload = compute_dashboard(build_dashboard(DashboardConfig(local_csv_path=missing_csv)))
        assert payload["state"] == "error"
        assert payload["hint"] == ERROR_HINT
        assert "sugarLevel" in payload["hint"]
        assert "public/data/bloodsugar-data.csv" in payload["hint"]
