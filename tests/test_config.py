"""Tests for configuration loaders."""

from neurostudy.config.app_config import PlannerConfig, get_provider_config, load_app_config
from neurostudy.config.support_modes import get_mode_info, list_mode_info
from neurostudy.core.modes import SupportMode


class TestAppConfig:
    """Tests for app config loading."""

    def test_repo_config(self):
        config = load_app_config()

        assert config.planner.default_provider == "gateway"
        assert config.planner.fallback_subjects == ["Mathematics", "English", "Science"]
        assert config.planner.default_grade == 8
        assert str(config.db_path).endswith("neurostudy.db")

    def test_cached(self):
        assert load_app_config() is load_app_config()
        assert load_app_config(force_reload=True) is not None

    def test_provider_lookup(self):
        gateway = get_provider_config("gateway")
        assert gateway is not None
        assert gateway.api_key_env == "AI_GATEWAY_API_KEY"
        assert get_provider_config("missing") is None

    def test_defaults_when_file_missing(self, workspace):
        config = load_app_config()

        assert "lmstudio" in config.providers
        assert config.planner.chapter_limit == 20
        assert str(config.state_dir) == "data/state"

    def test_partial_file(self, workspace):
        path = workspace / "data" / "config"
        path.mkdir(parents=True)
        (path / "app_config_v1.yaml").write_text("planner:\n  default_grade: 9\n")

        config = load_app_config()

        assert config.planner.default_grade == 9
        assert config.planner.default_board == "CBSE"
        assert config.providers == {}

    def test_planner_values_coerced(self):
        planner = PlannerConfig.from_dict(
            {"default_grade": "7", "fallback_subjects": ["Maths", 101], "colour": "red"}
        )

        assert planner.default_grade == 7
        assert planner.fallback_subjects == ["Maths", "101"]
        assert planner.chapter_limit == 20


class TestSupportModes:
    """Tests for the support mode catalog."""

    def test_catalog_complete_and_ordered(self):
        catalog = list_mode_info()
        assert [info.mode for info in catalog] == list(SupportMode)

    def test_repo_entries(self):
        info = get_mode_info("adhd")
        assert info.label == "ADHD"
        assert "Tasks broken into micro-steps" in info.features

    def test_unknown_mode(self):
        assert get_mode_info("telepathy") is None

    def test_generated_labels_without_file(self, workspace):
        info = get_mode_info(SupportMode.SENSORY_SAFE)
        assert info.label == "Sensory Safe"
        assert info.features == []
