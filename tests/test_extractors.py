"""Tests for the script text heuristics shared by detectors."""
import pytest

from src.detection.extractors import (
    SideEffect,
    analyze_side_effects,
    count_computed,
    count_methods,
    detect_cleanup_hooks,
    detect_prop_mutations,
    estimate_data_size,
    estimate_list_size,
    extract_component_name,
    extract_computed_bodies,
    extract_declared_props,
    extract_guard_bodies,
    extract_handlers,
    extract_mutation_blocks,
    extract_prop_usage,
    extract_store_definitions,
    find_listeners,
    has_matching_removal,
    has_virtualization_library,
    is_test_file,
    mask_prop_declarations,
    parse_for_expression,
    references_store,
    static_default_imports,
)


class TestProps:
    def test_options_array(self):
        assert extract_declared_props("export default { props: ['title', 'count'] }") == ["title", "count"]

    def test_options_object(self):
        text = "export default { props: { title: String, count: { type: Number, default: 0 } } }"
        assert extract_declared_props(text) == ["title", "count"]

    def test_define_props_runtime(self):
        assert extract_declared_props("const props = defineProps({ a: String, b: Number })") == ["a", "b"]
        assert extract_declared_props("defineProps(['x'])") == ["x"]

    def test_define_props_type_literal(self):
        text = "const props = defineProps<{ title: string; items?: Array<{ id: number }>; onSave: () => void }>()"
        assert extract_declared_props(text) == ["title", "items", "onSave"]

    def test_define_props_named_interface(self):
        text = "interface Props { label: string\n  size?: number }\nconst props = withDefaults(defineProps<Props>(), {})"
        assert extract_declared_props(text) == ["label", "size"]

    def test_none_and_empty(self):
        assert extract_declared_props(None) == []
        assert extract_declared_props("const a = 1") == []

    def test_usage_ignores_declaration(self):
        text = "export default { props: ['title', 'unused'], computed: { t() { return this.title } } }"
        props = extract_declared_props(text)
        assert extract_prop_usage(mask_prop_declarations(text), props) == ["title"]

    def test_prop_mutations(self):
        text = "export default { props: ['value'], methods: { set() { this.value = 2; props.value++ } } }"
        mutations = detect_prop_mutations(text)
        assert [mutation.site for mutation in mutations] == ["this.value =", "props.value++"]

    def test_comparison_is_not_mutation(self):
        text = "export default { props: ['value'], methods: { is() { return this.value === 2 } } }"
        assert detect_prop_mutations(text) == []


class TestComponentShape:
    def test_count_methods(self):
        text = """
        export default {
          methods: {
            save() { if (a) { return } },
            async load(id) { for (const x of y) {} }
          }
        }
        function helper() {}
        const arrow = (a) => a
        """
        assert count_methods(text) == 4

    def test_count_computed(self):
        text = "export default { computed: { a() { return 1 }, b: () => 2 } }\nconst c = computed(() => 3)"
        assert count_computed(text) == 3

    def test_computed_bodies_skip_setters(self):
        text = """
        export default {
          computed: {
            full: { get() { return this.a }, set(v) { this.a = v } },
            total() { return this.items.length }
          }
        }
        const doubled = computed(() => count.value * 2)
        """
        bodies = extract_computed_bodies(text)
        assert [item.name for item in bodies] == ["full", "total", None]
        assert "this.a = v" not in bodies[0].body
        assert bodies[2].body == "count.value * 2"

    def test_component_name(self):
        assert extract_component_name("export default { name: 'table' }", "X.vue") == "table"
        assert extract_component_name("", "src/components/user-card.vue") == "UserCard"
        assert extract_component_name(None, "src/button.vue") == "Button"


class TestListenersAndCleanup:
    def test_matching_removal(self):
        text = """
        onMounted(() => { window.addEventListener('resize', onResize) })
        onUnmounted(() => { window.removeEventListener('resize', onResize) })
        """
        listeners = find_listeners(text)
        assert [(item.target, item.event, item.handler) for item in listeners] == [("window", "resize", "onResize")]
        assert has_matching_removal(listeners[0], detect_cleanup_hooks(text))

    def test_options_cleanup_hook(self):
        text = """
        export default {
          mounted() { document.addEventListener('click', this.close) },
          beforeUnmount() { document.removeEventListener('click', this.close) }
        }
        """
        hooks = detect_cleanup_hooks(text)
        assert [hook.name for hook in hooks.options] == ["beforeUnmount"]
        assert has_matching_removal(find_listeners(text)[0], hooks)

    def test_different_handler_is_not_removal(self):
        text = """
        window.addEventListener('scroll', () => update())
        onBeforeUnmount(() => window.removeEventListener('scroll', update))
        """
        assert not has_matching_removal(find_listeners(text)[0], detect_cleanup_hooks(text))


class TestSideEffects:
    def test_categories_in_fixed_order(self):
        body = "console.log(x); this.count = 2; return fetch(url)"
        assert analyze_side_effects(body) == [SideEffect.MUTATION, SideEffect.ASYNC, SideEffect.METHOD_CALL]

    def test_pure_body(self):
        assert analyze_side_effects("return this.items.filter(i => i.done).length") == []
        assert analyze_side_effects(None) == []

    def test_dom_access(self):
        assert analyze_side_effects("return document.title") == [SideEffect.DOM]


class TestStores:
    def test_mutation_handlers(self):
        text = "const store = createStore({ mutations: { inc(state) { state.n++ }, set: (state, v) => { state.v = v } } })"
        handlers = [handler for block in extract_mutation_blocks(text) for handler in extract_handlers(block)]
        assert [handler.name for handler in handlers] == ["inc", "set"]
        assert text[handlers[0].index :].startswith("inc")

    def test_store_definitions(self):
        text = """
        export const useCart = defineStore('cart', () => { const user = useUser(); return {} })
        export const useUser = defineStore({ id: 'user', state: () => ({}) })
        """
        stores = extract_store_definitions(text)
        assert [(store.store_id, store.accessor) for store in stores] == [("cart", "useCart"), ("user", "useUser")]
        assert references_store(stores[0].body, stores[1])
        assert not references_store(stores[1].body, stores[0])


class TestGuards:
    def test_router_hooks_and_inline_guards(self):
        text = """
        router.beforeEach((to, from, next) => { next() })
        const routes = [{ path: '/a', beforeEnter: (to) => { return true } }]
        export default { beforeRouteLeave(to, from) { return false } }
        """
        guards = extract_guard_bodies(text)
        assert [guard.name for guard in guards] == ["beforeEach", "beforeEnter", "beforeRouteLeave"]
        assert "next()" in guards[0].body


class TestTemplateHelpers:
    @pytest.mark.parametrize(
        "expression, aliases, source",
        [
            ("item in items", ("item",), "items"),
            ("(item, index) in items", ("item", "index"), "items"),
            ("(value, key, i) of object", ("value", "key", "i"), "object"),
            ("{ id, name } in users", ("{ id, name }",), "users"),
        ],
    )
    def test_parse_for_expression(self, expression, aliases, source):
        parsed = parse_for_expression(expression)
        assert parsed.aliases == aliases
        assert parsed.source == source

    def test_parse_for_expression_invalid(self):
        assert parse_for_expression("items") is None
        assert parse_for_expression(None) is None

    def test_index_alias(self):
        assert parse_for_expression("(a, i) in xs").index_alias == "i"
        assert parse_for_expression("a in xs").index_alias is None


class TestSizeEstimates:
    def test_list_size(self):
        text = "const rows = ref(Array.from({ length: 2000 }, (_, i) => i))"
        assert estimate_list_size("rows", text) == 2000
        assert estimate_list_size("100", "") == 100
        assert estimate_list_size("[1, 2, 3]", "") == 3
        assert estimate_list_size("userItems", "") == 200
        assert estimate_list_size("tabs", "") == 0
        assert estimate_list_size("", "") == 0

    def test_data_size(self):
        assert estimate_data_size("new Array(1500)", "") == 1500
        assert estimate_data_size("tableData", "") == 1000
        assert estimate_data_size("{ a: 1 }", "") == 1
        assert estimate_data_size("count", "") == 0
        assert estimate_data_size("   ", "") == 0


class TestImportsAndFiles:
    def test_virtualization_library(self):
        assert has_virtualization_library("import { RecycleScroller } from 'vue-virtual-scroller'")
        assert not has_virtualization_library("import x from 'vue'")

    def test_static_default_imports(self):
        imports = static_default_imports("import Home from './Home.vue'\nimport { ref } from 'vue'")
        assert list(imports) == ["Home"]
        assert imports["Home"][0] == "./Home.vue"

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("src/Button.spec.ts", True),
            ("src/Button.test.js", True),
            ("src/__tests__/Button.js", True),
            ("project/tests/unit/a.js", True),
            ("src/Button.vue", False),
        ],
    )
    def test_is_test_file(self, path, expected):
        assert is_test_file(path) is expected
