from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from addonstore.addons.models import InstallOutcome, InstallStatus, UpgradeResult
from addonstore.backups.models import Snapshot
from addonstore.cli import main
from addonstore.dependencies.models import DependencyCandidate, MissingDependency, UserDecision
from addonstore.errors import AddonNotFoundError


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Addon store CLI" in result.output
    for command in ["sync", "install", "remove", "upgrade", "search", "installed", "deps", "backup", "import-list"]:
        assert command in result.output


def test_deps_help():
    runner = CliRunner()
    result = runner.invoke(main, ["deps", "--help"])
    assert result.exit_code == 0
    assert "Manage missing dependencies." in result.output


@patch("addonstore.cli.addons.get_service")
def test_install_prints_outcome(mock_get_service):
    service = MagicMock()
    service.install.return_value = InstallOutcome(
        addon_id=7,
        name="LibAddonMenu-2.0",
        status=InstallStatus.INSTALLED,
        version="2.1",
        root_directory="LibAddonMenu-2.0",
        dependencies=["LibStub"],
    )
    mock_get_service.return_value = service

    runner = CliRunner()
    result = runner.invoke(main, ["install", "7", "--force"])

    assert result.exit_code == 0
    service.install.assert_called_once_with(7, force_update=True)
    assert "LibAddonMenu-2.0 2.1: installed" in result.output
    assert "Depends on: LibStub" in result.output


@patch("addonstore.cli.addons.get_service")
def test_install_unknown_addon_is_reported(mock_get_service):
    service = MagicMock()
    service.install.side_effect = AddonNotFoundError(404)
    mock_get_service.return_value = service

    runner = CliRunner()
    result = runner.invoke(main, ["install", "404"])

    assert result.exit_code == 1
    assert "Addon 404 was not found in catalog" in result.output


@patch("addonstore.cli.addons.get_service")
def test_remove_not_installed_fails(mock_get_service):
    service = MagicMock()
    service.remove.return_value = False
    mock_get_service.return_value = service

    runner = CliRunner()
    result = runner.invoke(main, ["remove", "3"])

    assert result.exit_code == 1
    assert "Addon 3 is not installed" in result.output


@patch("addonstore.cli.addons.get_service")
def test_upgrade_reports_each_addon(mock_get_service):
    service = MagicMock()
    service.upgrade.return_value = [
        UpgradeResult(
            addon_id=1,
            name="Foo",
            outcome=InstallOutcome(addon_id=1, name="Foo", status=InstallStatus.UPDATED, version="1.1"),
        ),
        UpgradeResult(addon_id=2, name="Bar", error="Archive checksum mismatch"),
    ]
    mock_get_service.return_value = service

    runner = CliRunner()
    result = runner.invoke(main, ["upgrade"])

    assert result.exit_code == 0
    assert "Upgraded Foo to 1.1" in result.output
    assert "Failed to upgrade Bar: Archive checksum mismatch" in result.output


@patch("addonstore.cli.deps.get_service")
def test_deps_list_shows_candidates(mock_get_service):
    service = MagicMock()
    service.find_missing_dependencies.return_value = [
        MissingDependency(
            directory="LibFoo",
            required_by=["X", "Y"],
            candidates=[DependencyCandidate(id=3, name="LibFoo")],
        )
    ]
    mock_get_service.return_value = service

    runner = CliRunner()
    result = runner.invoke(main, ["deps", "list"])

    assert result.exit_code == 0
    assert "LibFoo (required by X, Y)" in result.output
    assert "3  LibFoo" in result.output


@patch("addonstore.cli.deps.get_service")
def test_deps_ignore_and_satisfy(mock_get_service):
    service = MagicMock()
    mock_get_service.return_value = service

    runner = CliRunner()
    assert runner.invoke(main, ["deps", "ignore", "LibFoo"]).exit_code == 0
    assert runner.invoke(main, ["deps", "satisfy", "LibBar", "12"]).exit_code == 0

    decisions = [c[0][0][0] for c in service.apply_resolutions.call_args_list]
    assert decisions == [
        UserDecision(directory="LibFoo", ignore=True),
        UserDecision(directory="LibBar", satisfied_by=12),
    ]


@patch("addonstore.cli.backup.get_service")
def test_backup_export(mock_get_service, tmp_path):
    service = MagicMock()
    service.export_backup.return_value = Snapshot()
    mock_get_service.return_value = service
    path = str(tmp_path / "backup.json")

    runner = CliRunner()
    result = runner.invoke(main, ["backup", "export", path])

    assert result.exit_code == 0
    service.export_backup.assert_called_once_with(path)
    assert "Exported 0 addons and 0 overrides" in result.output


def test_search_against_real_store(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "addon_dir": str(tmp_path / "AddOns"),
                "db_url": f"sqlite:///{tmp_path / 'addons.db'}",
                "endpoint_url": "",
            }
        )
    )

    runner = CliRunner()
    result = runner.invoke(main, ["--config", str(config_path), "search", "anything"])

    assert result.exit_code == 0
    assert "No addons found" in result.output
    assert (tmp_path / "addons.db").exists()
