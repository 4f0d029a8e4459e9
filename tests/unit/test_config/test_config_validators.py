"""
Unit tests for configuration validation.

Tests the validation of the watch, build, reload and logging sections.
"""

import pytest

from rebuildwatch.config.validators import (
    DEFAULT_BUILD_COMMAND,
    validate_build_config,
    validate_logging_config,
    validate_reload_config,
    validate_watch_config,
)
from rebuildwatch.validation import ValidationError


@pytest.mark.unit
class TestWatchConfigValidation:

    def test_validate_watch_config_success(self, sample_config_data, project_dir):
        rule = validate_watch_config(sample_config_data["watch"], project_dir)

        assert rule.project_root == project_dir
        assert rule.source_roots == (project_dir / "module",)
        assert rule.source_patterns == ("*.src",)
        assert rule.manifest_patterns == ("Cargo.toml", "Cargo.lock")
        assert rule.ignore_patterns == ("target/*",)

    def test_defaults_describe_a_rust_crate(self, temp_dir):
        rule = validate_watch_config({}, temp_dir)

        assert rule.project_root == temp_dir
        assert rule.source_roots == (temp_dir / "src-rust",)
        assert rule.source_patterns == ("*.rs",)
        assert rule.manifest_patterns == ("Cargo.toml", "Cargo.lock")

    def test_source_roots_relative_to_project_root(self, temp_dir):
        rule = validate_watch_config({"project_root": "crate", "source_roots": ["src-rust"]}, temp_dir)

        assert rule.project_root == temp_dir / "crate"
        assert rule.source_roots == (temp_dir / "crate" / "src-rust",)

    def test_duplicate_source_roots_collapse(self, temp_dir):
        rule = validate_watch_config({"source_roots": ["src", "./src"]}, temp_dir)

        assert rule.source_roots == (temp_dir / "src",)

    def test_missing_roots_are_not_checked_here(self, temp_dir):
        rule = validate_watch_config({"source_roots": ["missing"]}, temp_dir)

        assert rule.source_roots == (temp_dir / "missing",)

    def test_empty_source_patterns_rejected(self, temp_dir):
        with pytest.raises(ValidationError) as exc_info:
            validate_watch_config({"source_patterns": []}, temp_dir)

        assert exc_info.value.field_name == "watch.source_patterns"

    def test_empty_manifest_patterns_allowed(self, temp_dir):
        rule = validate_watch_config({"manifest_patterns": []}, temp_dir)

        assert rule.manifest_patterns == ()

    def test_non_list_patterns_rejected(self, temp_dir):
        with pytest.raises(ValidationError, match="must be a list"):
            validate_watch_config({"source_patterns": "*.rs"}, temp_dir)

    def test_blank_project_root_rejected(self, temp_dir):
        with pytest.raises(ValidationError, match="project_root"):
            validate_watch_config({"project_root": "  "}, temp_dir)


@pytest.mark.unit
class TestBuildConfigValidation:

    def test_validate_build_config_success(self, sample_config_data):
        config = validate_build_config(sample_config_data["build"])

        assert config.command == ["wasm-pack", "build", "--target", "web", "--release"]
        assert config.success_code == 0
        assert config.waiter_threads == 2
        assert config.history_size == 5

    def test_defaults(self):
        config = validate_build_config({})

        assert config.command == DEFAULT_BUILD_COMMAND
        assert config.thread_name_prefix == "BuildWaiter"
        assert config.shell_executable is None

    def test_string_command_kept_for_shell(self):
        config = validate_build_config({"command": "wasm-pack build --target web --release", "shell_executable": "/bin/bash"})

        assert config.uses_shell
        assert config.shell_executable == "/bin/bash"

    def test_shell_executable_with_list_command_warns(self, caplog):
        validate_build_config({"command": ["make"], "shell_executable": "/bin/bash"})

        assert "is ignored" in caplog.text

    @pytest.mark.parametrize("command", ["", "   ", [], [""], 42])
    def test_invalid_command_rejected(self, command):
        with pytest.raises(ValidationError):
            validate_build_config({"command": command})

    def test_unbalanced_quotes_rejected(self):
        with pytest.raises(ValidationError, match="shell syntax"):
            validate_build_config({"command": "wasm-pack build 'oops"})

    @pytest.mark.parametrize("code", [-1, 256, "zero"])
    def test_invalid_success_code_rejected(self, code):
        with pytest.raises(ValidationError, match="success_code"):
            validate_build_config({"success_code": code})

    def test_boolean_waiter_threads_rejected(self):
        with pytest.raises(ValidationError, match="waiter_threads"):
            validate_build_config({"waiter_threads": True})

    def test_zero_history_allowed(self):
        assert validate_build_config({"history_size": 0}).history_size == 0


@pytest.mark.unit
class TestReloadConfigValidation:

    def test_log_sink_default(self, temp_dir):
        config = validate_reload_config({}, temp_dir)

        assert config.sink == "log"
        assert config.touch_file is None

    def test_touch_sink_resolves_file(self, temp_dir):
        config = validate_reload_config({"sink": "TOUCH", "touch_file": "pkg/.reload"}, temp_dir)

        assert config.sink == "touch"
        assert config.touch_file == temp_dir / "pkg" / ".reload"

    def test_touch_sink_requires_file(self, temp_dir):
        with pytest.raises(ValidationError, match="touch_file"):
            validate_reload_config({"sink": "touch"}, temp_dir)

    def test_unknown_sink_rejected(self, temp_dir):
        with pytest.raises(ValidationError, match="reload.sink"):
            validate_reload_config({"sink": "websocket"}, temp_dir)


@pytest.mark.unit
class TestLoggingConfigValidation:

    def test_level_is_normalised(self):
        assert validate_logging_config({"level": "debug"}).level == "DEBUG"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            validate_logging_config({"level": "chatty"})
