"""End-to-end tests for FixtureBuilder against SQLite databases."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from spine_fixtures.core.errors import DatabaseNotConfiguredError, FixtureTableNotEmptyError
from spine_fixtures.core.settings import clear_settings_cache
from spine_fixtures.database.resolver import ConfigResolver, default_resolver
from spine_fixtures.fixtures import FixtureBuilder, FixtureLoader, FixtureSet
from tests._support import insert_row, row_count, sqlite_config

CLEANER = "spine_fixtures.fixtures.builder.DatabaseCleaner"


@pytest.fixture
def builder(resolver):
    """A FixtureBuilder isolated from the process-wide connection cache."""
    return FixtureBuilder(config_resolver=resolver)


def write_widget_group(directory: Path) -> Path:
    directory.mkdir(parents=True)
    (directory / "widgets.yml").write_text(
        "gizmo:\n  id: 7\n  name: Gizmo\n", encoding="utf-8"
    )
    return directory


class TestDatabaseYml:
    """Config given as a path to a YAML file."""

    def test_without_environment(self, builder, blog_db, database_yml, fixtures_path):
        insert_row(blog_db, "users", id=1337, first_name="Darth", last_name="Vader")

        fixtures = (
            builder.with_database_config(database_yml("without_environment_database.yml"))
            .with_fixture_directory(fixtures_path("without_environment_database_yml_fixtures"))
            .result
        )

        assert isinstance(fixtures, FixtureSet)
        assert fixtures.counts() == {"blogs": 2, "comments": 1, "posts": 3, "users": 3}
        assert row_count(blog_db, "users") == 3
        assert row_count(blog_db, "posts") == 3
        assert fixtures["users"]["luke"]["first_name"] == "Luke"

    def test_test_entry_of_environment_keyed_file(
        self, builder, blog_db, tmp_path, fixtures_path
    ):
        config = tmp_path / "database.yml"
        config.write_text(
            "development:\n"
            "  adapter: sqlite\n"
            f"  database: {tmp_path / 'development.db'}\n"
            "  username: root\n"
            "test:\n"
            "  adapter: sqlite\n"
            f"  database: {blog_db}\n"
            "  username: root\n",
            encoding="utf-8",
        )
        insert_row(blog_db, "users", id=1337, first_name="Darth", last_name="Vader")

        builder.refine_with(
            database_config=str(config),
            fixture_directory=fixtures_path("without_environment_database_yml_fixtures"),
        ).result

        expected = {"users": 3, "blogs": 2, "posts": 3, "comments": 1}
        assert {table: row_count(blog_db, table) for table in expected} == expected
        assert not (tmp_path / "development.db").exists()

    def test_pre_existing_rows_are_removed(self, builder, blog_db, database_yml, fixtures_path):
        insert_row(blog_db, "users", id=1337, first_name="Darth", last_name="Vader")

        builder.refine_with(
            database_config=database_yml("without_environment_database.yml"),
            fixture_directory=fixtures_path("without_environment_database_yml_fixtures"),
        ).result

        database = builder.config_resolver.connection(
            database_yml("without_environment_database.yml")
        )
        assert database.table("users").where(id=1337) == []

    def test_with_environment(self, builder, membership_db, database_yml, fixtures_path):
        fixtures = builder.refine_with(
            database_config=database_yml("with_environment_database.yml"),
            fixture_directory=fixtures_path("with_environment_database_yml_fixtures"),
        ).result

        assert fixtures.counts() == {"members": 2, "members_roles": 3, "roles": 3}
        assert row_count(membership_db, "members_roles") == 3

    def test_with_template(self, builder, blog_db, database_yml, fixtures_path):
        builder.refine_with(
            database_config=database_yml("without_environment_database.yml"),
            fixture_directory=fixtures_path("with_template_fixtures"),
        ).result

        resolved = builder.config_resolver.connection(
            database_yml("without_environment_database.yml")
        )
        assert len(resolved.table("users").where(last_name="Skywalker")) == 2
        assert row_count(blog_db, "users") == 3


class TestInlineConfig:
    """Config given as a mapping."""

    def test_without_environment(self, builder, housing_db, fixtures_path):
        fixtures = builder.refine_with(
            database_config=sqlite_config(housing_db),
            fixture_directory=fixtures_path("without_environment_hash_fixtures"),
        ).result

        assert fixtures.counts() == {"houses": 1, "people": 2, "residents": 2}
        assert row_count(housing_db, "people") == 2

    def test_with_environment(self, builder, widget_db, fixtures_path):
        fixtures = builder.refine_with(
            database_config={"test": sqlite_config(widget_db)},
            fixture_directory=fixtures_path("with_environment_hash_fixtures"),
        ).result

        assert fixtures.counts() == {"components": 2, "widgets": 1}
        assert row_count(widget_db, "components") == 2


class TestDatabaseCleanerOptions:
    def test_skip_does_not_clean(self, builder, widget_db, fixtures_path):
        with patch(CLEANER) as cleaner:
            builder.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=fixtures_path("with_environment_hash_fixtures"),
                database_cleaner_options={"skip": True},
            ).result
        cleaner.assert_not_called()
        assert row_count(widget_db, "widgets") == 1

    def test_skip_with_leftover_rows_refuses_to_load(self, builder, widget_db, fixtures_path):
        insert_row(widget_db, "widgets", id=99, name="Leftover")
        with pytest.raises(FixtureTableNotEmptyError, match="'widgets'"):
            builder.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=fixtures_path("with_environment_hash_fixtures"),
                database_cleaner_options={"skip": True},
            ).result
        assert row_count(widget_db, "widgets") == 1

    def test_cleans_by_default(self, builder, widget_db, fixtures_path):
        with patch(CLEANER) as cleaner:
            built = builder.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=fixtures_path("with_environment_hash_fixtures"),
            )
            built.result
        cleaner.assert_called_once_with(built.connection, None)
        cleaner.return_value.clean.assert_called_once_with()

    def test_only_listed_tables_are_cleaned(self, builder, housing_db, fixtures_path):
        insert_row(housing_db, "houses", id=42, street_address="12 Grimmauld Place")
        insert_row(housing_db, "residents", id=42, person_id=1, house_id=42)

        fixtures = builder.refine_with(
            database_config=sqlite_config(housing_db),
            fixture_directory=fixtures_path("without_environment_hash_fixtures"),
            database_cleaner_options={"tables": ["houses", "residents"]},
        ).result

        assert fixtures.counts()["houses"] == 1
        assert row_count(housing_db, "houses") == 1
        assert row_count(housing_db, "residents") == 2

    def test_unlisted_tables_keep_their_rows(self, builder, housing_db, fixtures_path):
        insert_row(housing_db, "people", id=42, first_name="Sirius", last_name="Black")

        with pytest.raises(FixtureTableNotEmptyError, match="'people'"):
            builder.refine_with(
                database_config=sqlite_config(housing_db),
                fixture_directory=fixtures_path("without_environment_hash_fixtures"),
                database_cleaner_options={"tables": ["houses", "residents"]},
            ).result
        assert row_count(housing_db, "people") == 1

    def test_option_helpers(self, builder):
        refined = builder.with_database_cleaner_options({"skip": 1, "tables": ("a", "b")})
        assert refined.skip_database_cleaner is True
        assert refined.database_cleaner_tables == ["a", "b"]

    def test_single_table_name(self, builder, widget_db, fixtures_path):
        refined = builder.with_database_cleaner_options({"tables": "widgets"})
        assert refined.database_cleaner_tables == ["widgets"]

        with patch(CLEANER) as cleaner:
            built = refined.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=fixtures_path("with_environment_hash_fixtures"),
            )
            built.result
        cleaner.assert_called_once_with(built.connection, ["widgets"])

    def test_options_default_to_empty_mapping(self, builder):
        assert builder.database_cleaner_options == {}
        assert builder.skip_database_cleaner is False
        assert builder.database_cleaner_tables is None

    def test_options_must_be_a_mapping(self, builder):
        with pytest.raises(TypeError, match="must be a mapping"):
            builder.with_database_cleaner_options(["users"])


class TestFixtureDirectory:
    def test_invalid_directory(self, builder, widget_db, tmp_path):
        missing = str(tmp_path / "nowhere")
        with pytest.raises(DatabaseNotConfiguredError, match="Invalid fixture directory"):
            builder.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=missing,
            ).result

    def test_invalid_directory_leaves_database_untouched(self, builder, widget_db, tmp_path):
        insert_row(widget_db, "widgets", id=99, name="Leftover")
        with pytest.raises(DatabaseNotConfiguredError):
            builder.refine_with(
                database_config=sqlite_config(widget_db),
                fixture_directory=str(tmp_path / "nowhere"),
            ).result
        assert row_count(widget_db, "widgets") == 1

    def test_falls_back_to_spec_fixtures(self, builder, widget_db, tmp_path, monkeypatch):
        write_widget_group(tmp_path / "spec" / "fixtures")
        write_widget_group(tmp_path / "test" / "fixtures")
        monkeypatch.chdir(tmp_path)

        refined = builder.with_database_config(sqlite_config(widget_db))
        assert refined.path_to_fixtures == "./spec/fixtures"
        fixtures = refined.result
        assert fixtures.name == "fixtures"
        assert fixtures.record("widgets", "gizmo")["id"] == 7

    def test_falls_back_to_test_fixtures(self, builder, widget_db, tmp_path, monkeypatch):
        write_widget_group(tmp_path / "test" / "fixtures")
        monkeypatch.chdir(tmp_path)

        refined = builder.with_database_config(sqlite_config(widget_db))
        assert refined.path_to_fixtures == "./test/fixtures"
        assert row_count(widget_db, "widgets") == 0
        refined.result
        assert row_count(widget_db, "widgets") == 1

    def test_candidates_from_settings(self, builder, tmp_path, monkeypatch):
        group = write_widget_group(tmp_path / "custom")
        monkeypatch.setenv("SPINE_FIXTURES_FIXTURE_DIRECTORIES", f'["{group}"]')
        clear_settings_cache()
        assert builder.path_to_fixtures == str(group)

    def test_no_fixtures_found(self, builder, widget_db, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(DatabaseNotConfiguredError, match="Unable to find fixtures to load"):
            builder.with_database_config(sqlite_config(widget_db)).result

    def test_trailing_separator_is_ignored(self, builder, widget_db, fixtures_path):
        fixtures = builder.refine_with(
            database_config=sqlite_config(widget_db),
            fixture_directory=fixtures_path("with_environment_hash_fixtures") + "/",
        ).result
        assert fixtures.name == "with_environment_hash_fixtures"


class TestConfigErrors:
    def test_unresolvable_config_raises_before_cleaning(self, builder, tmp_path, fixtures_path):
        with patch(CLEANER) as cleaner:
            with pytest.raises(DatabaseNotConfiguredError, match="^Unable to connect to database$"):
                builder.refine_with(
                    database_config=str(tmp_path / "missing.yml"),
                    fixture_directory=fixtures_path("with_environment_hash_fixtures"),
                    config_resolver=ConfigResolver(
                        builder.config_resolver.cache,
                        default_path=str(tmp_path / "also_missing.yml"),
                    ),
                ).result
        cleaner.assert_not_called()

    def test_missing_fields(self, builder, fixtures_path):
        with pytest.raises(DatabaseNotConfiguredError) as exc_info:
            builder.refine_with(
                database_config={"test": {"database": "x.db"}},
                fixture_directory=fixtures_path("with_environment_hash_fixtures"),
            ).result
        assert str(exc_info.value) == (
            "Unable to connect to database: Missing config for adapter, username"
        )


class TestConnectionSharing:
    def test_equal_configs_share_a_connection(self, builder, widget_db):
        first = builder.with_database_config(sqlite_config(widget_db))
        second = builder.with_database_config(sqlite_config(widget_db))
        assert first is not second
        assert first.connection is second.connection

    def test_result_is_built_once(self, builder, widget_db, fixtures_path):
        refined = builder.refine_with(
            database_config=sqlite_config(widget_db),
            fixture_directory=fixtures_path("with_environment_hash_fixtures"),
            database_cleaner_options={"skip": True},
        )
        # a second load would hit non-empty tables
        assert refined.result is refined.result
        assert row_count(widget_db, "widgets") == 1

    def test_a_new_builder_reloads(self, builder, widget_db, fixtures_path):
        refined = builder.refine_with(
            database_config=sqlite_config(widget_db),
            fixture_directory=fixtures_path("with_environment_hash_fixtures"),
        )
        refined.result
        refined.with_fixture_directory(
            fixtures_path("with_environment_hash_fixtures")
        ).result
        assert row_count(widget_db, "widgets") == 1
        assert row_count(widget_db, "components") == 2


class TestDefaults:
    def test_default_collaborators(self):
        builder = FixtureBuilder()
        assert builder.config_resolver is default_resolver()
        assert isinstance(builder.fixture_loader, FixtureLoader)
        assert builder.database_config is None
        assert builder.fixture_directory is None

    def test_refinement_keeps_collaborators(self, builder):
        refined = builder.with_fixture_directory("somewhere")
        assert refined.config_resolver is builder.config_resolver
        assert refined.fixture_loader is builder.fixture_loader

    def test_custom_loader(self, builder, widget_db, fixtures_path):
        loader = FixtureLoader(require_empty=False)
        insert_row(widget_db, "components", id=99, name="Spare")
        builder.refine_with(
            database_config=sqlite_config(widget_db),
            fixture_directory=fixtures_path("with_environment_hash_fixtures"),
            database_cleaner_options={"skip": True},
            fixture_loader=loader,
        ).result
        assert row_count(widget_db, "components") == 3
