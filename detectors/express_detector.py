import re
from typing import List, Dict, Set, Tuple, Iterable

from models import (
    FileAnalysis, LocalRoute, ModuleBinding, MountStatement,
    Receiver, DeclarationKind, BindingKind, HTTPMethod
)
from detectors.base_detector import BaseDetector
from analyzers.expression_resolver import (
    resolve_path_expression, fallback_path_from_expression,
    split_route_path_expressions, unwrap_parens
)
from analyzers.token_scanner import (
    blank_comments, extract_first_argument, extract_call_arguments, find_matching_close
)

ROUTE_METHODS = tuple(method.value.lower() for method in HTTPMethod)

# Optional TypeScript annotation between a declared name and '='
_TYPE_ANNOTATION = r'(?:\s*:\s*[^=;\n]+?)?'
_DECLARATION = r'\b(?:const|let|var)\s+([\w$]+)' + _TYPE_ANNOTATION + r'\s*=\s*'


class ExpressDetector(BaseDetector):
    """
    Per-file extractor for Express.js routing constructs.

    Finds app/router aliases, module bindings, string constants, mount
    statements and route declarations (direct and `.route()` chains). Never
    raises on malformed input; what cannot be matched is simply absent.
    The instance keeps only compiled patterns, so it can be shared between
    worker threads.
    """

    def __init__(self, framework: str = "express", chain_window: int = 400):
        super().__init__(framework)
        self.chain_window = chain_window

        method_group = '|'.join(ROUTE_METHODS)

        self.import_patterns = {
            'import_clause': re.compile(r'import\s+([^;]+?)\s+from\s+[\'"]([^\'"]+)[\'"]'),
            'default_alias': re.compile(r'^([\w$]+)'),
            'namespace_alias': re.compile(r'^\*\s+as\s+([\w$]+)'),
            'named_part': re.compile(r'\{([^}]+)\}'),
            'named_alias': re.compile(r'^([\w$]+)(?:\s+as\s+([\w$]+))?$'),
            'router_specifier': re.compile(r'^Router(?:\s+as\s+([\w$]+))?$'),
        }

        self.require_patterns = {
            'require': re.compile(
                _DECLARATION + r'require\(\s*([\'"`])([^\'"`]+)\2\s*\)'
            ),
            'destructured_express': re.compile(
                r'\b(?:const|let|var)\s*\{([^}]*)\}\s*=\s*require\(\s*[\'"]express[\'"]\s*\)'
            ),
            'router_property': re.compile(r'^Router(?:\s*:\s*([\w$]+))?$'),
            'inline_app': re.compile(
                _DECLARATION + r'require\(\s*[\'"]express[\'"]\s*\)\s*\('
            ),
            'inline_router': re.compile(
                _DECLARATION + r'require\(\s*[\'"]express[\'"]\s*\)\s*\.\s*Router\s*\('
            ),
        }

        self.constant_pattern = re.compile(_DECLARATION + r'([^\r\n;]+)')
        self.inline_require = re.compile(r'^require\(\s*([\'"`])([^\'"`]+)\1\s*\)$')
        self.identifier = re.compile(r'^[A-Za-z_$][\w$]*$')
        self.chain_link = re.compile(r'\s*(\.)\s*([A-Za-z_$][\w$]*)\s*\(')
        self.call_or_member = re.compile(r'\s*[(.]')

        # Receiver-dependent patterns are built per file from these templates
        self.route_templates = {
            'direct': (
                r'(?<![\w$.])({receivers})\s*(?:\.\s*(?i:(' + method_group + r'))'
                r'|\[\s*[\'"`]?(?i:(' + method_group + r'))[\'"`]?\s*\])\s*\('
            ),
            'chained': r'(?<![\w$.])({receivers})\s*\.\s*route\s*\(',
            'use': r'(?<![\w$.])({receivers})\s*\.\s*use\s*\(',
        }

    def get_supported_extensions(self) -> List[str]:
        return ['.js', '.ts', '.jsx', '.tsx', '.mjs', '.cjs']

    def can_handle_file(self, file_path: str) -> bool:
        """Source extensions only; declaration files and bundles are skipped"""
        lowered = file_path.lower()
        if lowered.endswith('.d.ts') or '.min.' in lowered or 'bundle.' in lowered:
            return False
        return super().can_handle_file(file_path)

    def preprocess_content(self, content: str) -> str:
        return blank_comments(content)

    def analyze(self, file_id: str, content: str) -> FileAnalysis:
        """
        Extract constants, bindings, mounts and routes from one file
        """
        text = self.preprocess_content(content or '')

        # Step 1: string constants, resolved to a fixpoint within the file
        constants = self._collect_constants(text)

        # Step 2: module bindings and express/router factory aliases
        imports, express_aliases, router_factories = self._collect_imports(text)
        requires, require_express, require_routers = self._collect_requires(text)
        express_aliases |= require_express
        router_factories |= require_routers

        # Step 3: identifiers that act as app/router receivers
        app_identifiers, router_identifiers = self._collect_receivers(
            text, express_aliases, router_factories
        )

        # Step 4: mount statements
        mounts, app_use_prefixes = self._collect_mounts(text, app_identifiers, router_identifiers)

        # Step 5: route declarations
        routes = self._collect_direct_routes(text, constants, app_identifiers, router_identifiers)
        routes.extend(self._collect_chained_routes(text, constants, app_identifiers, router_identifiers))

        analysis = FileAnalysis(
            file_id=file_id,
            constants=constants,
            requires=requires,
            imports=imports,
            app_use_prefix_expressions=app_use_prefixes,
            mounts=mounts,
            routes=routes,
        )
        self.log_detection_result(file_id, analysis)
        return analysis

    # ------------------------------------------------------------------
    # Bindings and aliases
    # ------------------------------------------------------------------

    def _collect_imports(self, text: str) -> Tuple[List[ModuleBinding], Set[str], Set[str]]:
        """ES module imports: bindings for other modules, aliases for express"""
        imports: List[ModuleBinding] = []
        express_aliases = {'express'}
        router_factories = {'Router'}
        patterns = self.import_patterns

        for match in patterns['import_clause'].finditer(text):
            clause = re.sub(r'^type\s+', '', match.group(1).strip())
            source = match.group(2).strip()

            default_match = patterns['default_alias'].match(clause)
            namespace_match = patterns['namespace_alias'].match(clause)
            named_match = patterns['named_part'].search(clause)
            named_parts = [p.strip() for p in named_match.group(1).split(',')] if named_match else []
            named_parts = [p for p in named_parts if p]

            if source == 'express':
                if default_match:
                    express_aliases.add(default_match.group(1))
                if namespace_match:
                    express_aliases.add(namespace_match.group(1))
                for part in named_parts:
                    router_match = patterns['router_specifier'].match(part)
                    if router_match:
                        router_factories.add(router_match.group(1) or 'Router')
                continue

            alias = None
            if namespace_match:
                alias = namespace_match.group(1)
            elif default_match:
                alias = default_match.group(1)

            if alias:
                imports.append(ModuleBinding(alias, source, BindingKind.IMPORT))
            for part in named_parts:
                named_alias = patterns['named_alias'].match(part)
                if named_alias:
                    name = named_alias.group(2) or named_alias.group(1)
                    imports.append(ModuleBinding(name, source, BindingKind.IMPORT))

        return imports, express_aliases, router_factories

    def _collect_requires(self, text: str) -> Tuple[List[ModuleBinding], Set[str], Set[str]]:
        """CommonJS requires: bindings, plus express aliases and Router destructuring"""
        requires: List[ModuleBinding] = []
        express_aliases: Set[str] = set()
        router_factories: Set[str] = set()
        patterns = self.require_patterns

        for match in patterns['require'].finditer(text):
            name, source = match.group(1), match.group(3)
            requires.append(ModuleBinding(name, source, BindingKind.REQUIRE))

            if source == 'express':
                # require('express')() and require('express').Router() are receivers, not aliases
                if not self.call_or_member.match(text, match.end()):
                    express_aliases.add(name)

        for match in patterns['destructured_express'].finditer(text):
            for prop in match.group(1).split(','):
                router_match = patterns['router_property'].match(prop.strip())
                if router_match:
                    router_factories.add(router_match.group(1) or 'Router')

        return requires, express_aliases, router_factories

    def _collect_receivers(self, text: str, express_aliases: Set[str],
                           router_factories: Set[str]) -> Tuple[Set[str], Set[str]]:
        """Identifiers bound to express() and Router(); app/router are always known"""
        app_identifiers = {'app'}
        router_identifiers = {'router'}

        express_group = self._alternation(express_aliases)
        factory_group = self._alternation(router_factories)

        app_pattern = re.compile(_DECLARATION + r'(?:' + express_group + r')\s*\(')
        router_pattern = re.compile(_DECLARATION + r'(?:' + express_group + r')\s*\.\s*Router\s*\(')
        factory_pattern = re.compile(_DECLARATION + r'(?:new\s+)?(?:' + factory_group + r')\s*\(')

        for match in app_pattern.finditer(text):
            app_identifiers.add(match.group(1))
        for match in self.require_patterns['inline_app'].finditer(text):
            app_identifiers.add(match.group(1))

        for pattern in (router_pattern, factory_pattern, self.require_patterns['inline_router']):
            for match in pattern.finditer(text):
                router_identifiers.add(match.group(1))

        return app_identifiers, router_identifiers

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------

    def _collect_constants(self, text: str) -> Dict[str, str]:
        """
        Resolve single-line assignments against the growing table until a
        pass makes no progress. Each name is resolved at most once.
        """
        constants: Dict[str, str] = {}
        remaining = [
            (match.group(1), unwrap_parens(match.group(2).strip()))
            for match in self.constant_pattern.finditer(text)
        ]

        made_progress = True
        while remaining and made_progress:
            made_progress = False
            next_remaining = []

            for name, expression in remaining:
                if name in constants:
                    continue
                resolved = resolve_path_expression(expression, constants)
                if resolved:
                    constants[name] = resolved
                    made_progress = True
                else:
                    next_remaining.append((name, expression))

            remaining = next_remaining

        return constants

    # ------------------------------------------------------------------
    # Mounts
    # ------------------------------------------------------------------

    def _collect_mounts(self, text: str, app_identifiers: Set[str],
                        router_identifiers: Set[str]) -> Tuple[List[MountStatement], List[str]]:
        """
        `<recv>.use(prefix, ..., router)` and `<recv>.use(router)` calls.

        Also returns the first argument of every app-level `use` that has a
        second argument, traceable or not; these feed the app prefix guess.
        """
        mounts: List[MountStatement] = []
        app_use_prefixes: List[str] = []

        receivers = app_identifiers | router_identifiers
        pattern = re.compile(self.route_templates['use'].format(receivers=self._alternation(receivers)))

        for match in pattern.finditer(text):
            receiver = self._receiver_kind(match.group(1), app_identifiers)
            open_index = match.end() - 1
            args = extract_call_arguments(text, open_index)
            if not args:
                continue

            if len(args) >= 2:
                prefix_expression = args[0]
                if receiver is Receiver.APP:
                    app_use_prefixes.append(prefix_expression)
            else:
                prefix_expression = ''

            target = args[-1]
            line, _ = self._position_at(text, match.start())

            if self.identifier.match(target):
                mounts.append(MountStatement(receiver, prefix_expression,
                                             router_identifier=target, line=line))
                continue

            inline = self.inline_require.match(target)
            if inline:
                mounts.append(MountStatement(receiver, prefix_expression,
                                             module_source=inline.group(2), line=line))

        return mounts, app_use_prefixes

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def _collect_direct_routes(self, text: str, constants: Dict[str, str],
                               app_identifiers: Set[str], router_identifiers: Set[str]) -> List[LocalRoute]:
        """recv.get(path, ...) and recv['get'](path, ...)"""
        routes: List[LocalRoute] = []
        receivers = self._alternation(app_identifiers | router_identifiers)
        pattern = re.compile(self.route_templates['direct'].format(receivers=receivers))

        position = 0
        while True:
            match = pattern.search(text, position)
            if not match:
                break
            position = match.end()

            argument = extract_first_argument(text, match.end())
            if not argument or not argument.expression:
                continue

            # Resume after the path argument so its contents are not re-matched
            position = max(position, argument.end_index + 1)

            method = (match.group(2) or match.group(3)).upper()
            receiver = self._receiver_kind(match.group(1), app_identifiers)
            line, column = self._position_at(text, match.start())

            routes.extend(self._make_routes(
                method, receiver, DeclarationKind.DIRECT,
                argument.expression, constants, line, column
            ))

        return routes

    def _collect_chained_routes(self, text: str, constants: Dict[str, str],
                                app_identifiers: Set[str], router_identifiers: Set[str]) -> List[LocalRoute]:
        """recv.route(path).get(...).post(...)"""
        routes: List[LocalRoute] = []
        receivers = self._alternation(app_identifiers | router_identifiers)
        pattern = re.compile(self.route_templates['chained'].format(receivers=receivers))

        for match in pattern.finditer(text):
            open_index = match.end() - 1
            argument = extract_first_argument(text, open_index + 1)
            if not argument or not argument.expression:
                continue

            close_index = find_matching_close(text, open_index)
            if close_index == -1:
                continue

            receiver = self._receiver_kind(match.group(1), app_identifiers)

            for method, dot_index in self._walk_chain(text, close_index + 1):
                line, column = self._position_at(text, dot_index)
                routes.extend(self._make_routes(
                    method, receiver, DeclarationKind.CHAINED,
                    argument.expression, constants, line, column
                ))

        return routes

    def _walk_chain(self, text: str, start: int) -> Iterable[Tuple[str, int]]:
        """
        Follow `.name(...)` links after a `.route(...)` call.

        Yields (METHOD, index of the '.') for links naming an HTTP method.
        Stops when the chain ends, a call is unbalanced, or a link starts
        beyond the chain window.
        """
        limit = start + self.chain_window
        position = start

        while position < len(text):
            link = self.chain_link.match(text, position)
            if not link or link.start(1) >= limit:
                return

            name = link.group(2)
            if name.lower() in ROUTE_METHODS:
                yield name.upper(), link.start(1)

            call_close = find_matching_close(text, link.end() - 1)
            if call_close == -1:
                return
            position = call_close + 1

    def _make_routes(self, method: str, receiver: Receiver, kind: DeclarationKind,
                     raw_expression: str, constants: Dict[str, str],
                     line: int, column: int) -> List[LocalRoute]:
        """One LocalRoute per path expression (array literals are split)"""
        routes = []
        for path_expression in split_route_path_expressions(raw_expression):
            resolved_path = resolve_path_expression(path_expression, constants)
            routes.append(LocalRoute(
                method=method,
                receiver=receiver,
                kind=kind,
                path_expression=path_expression,
                path=resolved_path or fallback_path_from_expression(path_expression),
                resolved_path=resolved_path,
                line=line,
                column=column,
            ))
        return routes

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _alternation(identifiers: Iterable[str]) -> str:
        # Longest first so an alias never shadows a longer one sharing its prefix
        ordered = sorted(set(identifiers), key=lambda name: (-len(name), name))
        return '|'.join(re.escape(name) for name in ordered)

    @staticmethod
    def _receiver_kind(identifier: str, app_identifiers: Set[str]) -> Receiver:
        return Receiver.APP if identifier in app_identifiers else Receiver.ROUTER

    @staticmethod
    def _position_at(text: str, index: int) -> Tuple[int, int]:
        """Zero-based (line, column) of a character offset"""
        line = text.count('\n', 0, index)
        column = index - (text.rfind('\n', 0, index) + 1)
        return line, column
