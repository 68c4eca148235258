"""Tests for plugin resolution: ordering, overrides, injections, api merge."""
from unittest.mock import Mock

import pytest

from folio_core.editor import create_editor
from folio_core.plugins import (
    PluginConfig,
    Registry,
    merge_plugins,
    resolve_and_sort_plugins,
    resolve_plugin,
    resolve_plugins,
)
from folio_core.plugins.core import DebugPlugin


def keys(entries):
    return [p.key for p in entries]


# ═══════════════════════════════════════════════════════════════════════════
# resolve_plugins
# ═══════════════════════════════════════════════════════════════════════════

class TestResolvePlugins:
    def test_orders_by_priority(self):
        registry = resolve_plugins([
            PluginConfig(key="a", priority=1),
            PluginConfig(key="b", priority=3),
            PluginConfig(key="c", priority=2),
        ])
        assert keys(registry.plugin_list) == ["b", "c", "a"]

    def test_equal_priority_keeps_declaration_order(self):
        registry = resolve_plugins([
            PluginConfig(key="x"),
            PluginConfig(key="y"),
            PluginConfig(key="z"),
        ])
        assert keys(registry.plugin_list) == ["x", "y", "z"]

    def test_nested_plugins_are_included(self):
        registry = resolve_plugins([
            PluginConfig(key="parent", plugins=[
                PluginConfig(key="child1"),
                PluginConfig(key="child2"),
            ]),
        ])
        order = keys(registry.plugin_list)
        assert "parent" in order
        assert "child1" in order
        assert "child2" in order
        assert order.index("parent") < order.index("child1")
        assert order.index("parent") < order.index("child2")

    def test_disabled_plugins_excluded(self):
        registry = resolve_plugins([
            PluginConfig(key="enabled"),
            PluginConfig(key="disabled", enabled=False, plugins=[PluginConfig(key="child")]),
        ])
        assert "enabled" in registry.plugins
        assert "disabled" not in registry.plugins
        assert "child" not in registry.plugins

    def test_override_changes_target_type(self):
        registry = resolve_plugins([
            PluginConfig(key="a", type="original",
                         override={"plugins": {"b": {"type": "overridden"}}}),
            PluginConfig(key="b", type="original"),
        ])
        assert registry.plugins["a"].type == "original"
        assert registry.plugins["b"].type == "overridden"

    def test_indexes_follow_final_order(self):
        registry = resolve_plugins([
            PluginConfig(key="a", priority=1),
            PluginConfig(key="b", priority=2),
        ])
        assert [p.index for p in registry.plugin_list] == [0, 1]
        assert registry.plugins["b"].index == 0

    def test_new_resolution_builds_new_registry(self):
        first = resolve_plugins([PluginConfig(key="a")])
        second = resolve_plugins([PluginConfig(key="b")])
        assert first is not second
        assert keys(first.plugin_list) == ["a"]
        assert keys(second.plugin_list) == ["b"]


class TestApiMerge:
    def test_merges_all_plugin_apis(self):
        editor = create_editor(plugins=[
            PluginConfig(key="plugin1", api={"method_a": lambda: "A"}),
            PluginConfig(key="plugin2", api={"method_b": lambda: "B"}),
        ])
        assert editor.api.method_a() == "A"
        assert editor.api.method_b() == "B"

    def test_later_plugin_overwrites_same_method(self):
        editor = create_editor(plugins=[
            PluginConfig(key="plugin1", api={"method": lambda _: "first"}),
            PluginConfig(key="plugin2", api={"method": lambda _: "second"}),
        ])
        assert editor.api.method(1) == "second"

    def test_same_key_replaces_plugin_and_its_api(self):
        original = Mock()
        replacement = Mock()
        editor = create_editor(plugins=[
            PluginConfig(key="a", api={"method": original}),
            PluginConfig(key="a", api={"method": replacement}),
        ])

        editor.api.method({"level": "debug", "message": "Test message"})

        original.assert_not_called()
        replacement.assert_called_once_with({"level": "debug", "message": "Test message"})
        assert [p.key for p in editor.plugin_list].count("a") == 1

    def test_namespaces_merge_by_method(self):
        registry = resolve_plugins([
            PluginConfig(key="p1", api={"table": {"insert_row": lambda: "row"}}),
            PluginConfig(key="p2", api={"table": {"insert_column": lambda: "col"}}),
        ])
        assert registry.api.table.insert_row() == "row"
        assert registry.api.table.insert_column() == "col"

    def test_core_debug_plugin_can_be_replaced(self):
        custom_logger = Mock()
        editor = create_editor(plugins=[
            DebugPlugin.configure(options={"logger": {"log": custom_logger}}),
        ])

        editor.api.debug.log("Test message", "TEST")

        custom_logger.assert_called_once_with("Test message", "TEST", None)


# ═══════════════════════════════════════════════════════════════════════════
# resolve_and_sort_plugins
# ═══════════════════════════════════════════════════════════════════════════

class TestResolveAndSortPlugins:
    def test_sorts_by_priority(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", priority=1),
            PluginConfig(key="b", priority=3),
            PluginConfig(key="c", priority=2),
        ])
        assert keys(result) == ["b", "c", "a"]

    def test_nested_children_sorted_under_parent(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="parent", plugins=[
                PluginConfig(key="child1", priority=2),
                PluginConfig(key="child2", priority=1),
            ]),
        ])
        assert keys(result) == ["parent", "child1", "child2"]

    def test_dependency_before_dependent(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", priority=1),
            PluginConfig(key="b", priority=3, dependencies=["c"]),
            PluginConfig(key="c", priority=2),
        ])
        assert keys(result) == ["c", "b", "a"]

    def test_multiple_dependencies(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", priority=3, dependencies=["b", "c"]),
            PluginConfig(key="b", priority=2),
            PluginConfig(key="c", priority=1),
        ])
        assert keys(result) == ["b", "c", "a"]

    def test_transitive_dependencies(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", priority=3, dependencies=["b"]),
            PluginConfig(key="b", priority=2, dependencies=["c"]),
            PluginConfig(key="c", priority=1),
        ])
        assert keys(result) == ["c", "b", "a"]

    def test_priority_kept_when_dependencies_allow(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", priority=3),
            PluginConfig(key="b", priority=2, dependencies=["c"]),
            PluginConfig(key="c", priority=1),
        ])
        assert keys(result) == ["a", "c", "b"]

    def test_circular_dependencies_terminate(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="a", dependencies=["b"]),
            PluginConfig(key="b", dependencies=["a"]),
        ])
        assert len(result) == 2
        assert "a" in keys(result)
        assert "b" in keys(result)

    def test_dependencies_between_children(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="parent", plugins=[
                PluginConfig(key="child1", dependencies=["child2"]),
                PluginConfig(key="child2"),
            ]),
        ])
        assert keys(result)[1:] == ["child2", "child1"]

    def test_type_defaults_to_key(self):
        result = resolve_and_sort_plugins([PluginConfig(key="paragraph")])
        assert result[0].type == "paragraph"

    def test_parent_and_depth_recorded(self):
        result = resolve_and_sort_plugins([
            PluginConfig(key="parent", plugins=[PluginConfig(key="child")]),
        ])
        child = result[1]
        assert child.parent == "parent"
        assert child.depth == 1
        assert result[0].parent is None


# ═══════════════════════════════════════════════════════════════════════════
# merge_plugins
# ═══════════════════════════════════════════════════════════════════════════

class TestMergePlugins:
    def test_merges_into_empty_registry(self):
        registry = merge_plugins(Registry(), [
            PluginConfig(key="a", type="typeA"),
            PluginConfig(key="b", type="typeB"),
        ])
        assert len(registry.plugin_list) == 2
        assert registry.plugins["a"].type == "typeA"
        assert registry.plugins["b"].type == "typeB"

    def test_updates_existing_plugin_in_place(self):
        registry = resolve_plugins([
            PluginConfig(key="a", type="oldType"),
            PluginConfig(key="b"),
        ])
        merged = merge_plugins(registry, [PluginConfig(key="a", type="newType")])

        assert keys(merged.plugin_list) == ["a", "b"]
        assert merged.plugins["a"].type == "newType"
        assert registry.plugins["a"].type == "oldType"

    def test_rebuilds_api(self):
        registry = resolve_plugins([PluginConfig(key="a", api={"m": lambda: 1})])
        merged = merge_plugins(registry, [PluginConfig(key="a", api={"m": lambda: 2})])
        assert merged.api.m() == 2


# ═══════════════════════════════════════════════════════════════════════════
# Overrides through the editor
# ═══════════════════════════════════════════════════════════════════════════

class TestApplyOverrides:
    def test_nested_override_reaches_child(self):
        registry = resolve_plugins([
            PluginConfig(
                key="parent",
                override={"plugins": {"child": {"type": "overriddenChild"}}},
                plugins=[PluginConfig(key="child", type="originalChild")],
            ),
        ])
        assert registry.plugins["child"].type == "overriddenChild"

    def test_last_override_in_order_wins(self):
        editor = create_editor(plugins=[
            PluginConfig(key="a", type="originalA",
                         override={"plugins": {"c": {"type": "overriddenByA"}}}),
            PluginConfig(key="b", type="originalB",
                         override={"plugins": {"c": {"type": "overriddenByB"}}}),
            PluginConfig(key="c", type="originalC"),
        ])
        assert editor.plugins["c"].type == "overriddenByB"

    def test_component_override_priority(self):
        original = object()
        override = object()
        high_priority = object()
        preserved = object()

        editor = create_editor(plugins=[
            PluginConfig(key="a", priority=2, override={"components": {
                "b": override, "c": override, "d": override, "e": override,
            }}),
            PluginConfig(key="b", priority=3, component=original),
            PluginConfig(key="c", priority=1),
            PluginConfig(key="d", priority=1, component=original),
            PluginConfig(key="e", priority=4, override={"components": {
                "b": high_priority, "d": high_priority,
            }}),
            PluginConfig(key="f", priority=5, component=preserved),
        ])

        # Higher priority override
        assert editor.get_plugin("b").component is high_priority
        # No initial component, so it gets set
        assert editor.get_plugin("c").component is override
        # Lower priority component gets overridden
        assert editor.get_plugin("d").component is high_priority
        # Untouched component is preserved
        assert editor.get_plugin("f").component is preserved

    def test_registry_override_enabled_removes_plugin(self):
        editor = create_editor(
            override={"enabled": {"b": False}},
            plugins=[PluginConfig(key="a"), PluginConfig(key="b"), PluginConfig(key="c")],
        )
        assert "a" in editor.plugins
        assert "b" not in editor.plugins
        assert "c" in editor.plugins

    def test_registry_override_plugins_enabled_removes_plugin(self):
        editor = create_editor(
            override={"plugins": {"b": {"enabled": False}}},
            plugins=[PluginConfig(key="a"), PluginConfig(key="b"), PluginConfig(key="c")],
        )
        assert "a" in editor.plugins
        assert "b" not in editor.plugins
        assert "c" in editor.plugins


# ═══════════════════════════════════════════════════════════════════════════
# target_plugins
# ═══════════════════════════════════════════════════════════════════════════

class TestTargetPlugins:
    def test_explicit_keys_first_then_computed(self):
        plugin = PluginConfig(
            key="test_plugin",
            inject={
                "plugins": {
                    "plugin1": {"deserialize_html": {"get_node": lambda: None}},
                    "plugin3": {"deserialize_html": {"get_node": lambda: None}},
                },
                "target_plugin_to_inject": lambda plugin, target_plugin: {
                    "deserialize_html": {"get_node": lambda: None},
                },
                "target_plugins": ["plugin1", "plugin2"],
            },
        )

        resolved = resolve_plugin(plugin)
        injected = resolved.inject.plugins

        assert list(injected) == ["plugin1", "plugin3", "plugin2"]
        assert injected["plugin1"]["deserialize_html"]["get_node"] is not None
        assert injected["plugin2"]["deserialize_html"]["get_node"] is not None
        assert injected["plugin3"]["deserialize_html"]["get_node"] is not None

    def test_declaration_is_not_modified(self):
        plugin = PluginConfig(
            key="p",
            inject={
                "target_plugins": ["t"],
                "target_plugin_to_inject": lambda plugin, target_plugin: {"type": "x"},
            },
        )
        resolve_plugin(plugin)
        assert plugin.inject.plugins == {}
