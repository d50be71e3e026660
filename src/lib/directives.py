"""
Directive registry and built-in directives for docweave

The registry maps directive names and aliases to DirectiveSpec objects and
turns a parsed invocation into AST nodes: options are resolved through their
aliases, coerced against the directive's option schema, and only then handed to the
directive's run function.

Registries are plain objects passed to the parser; two registries never share
state.
"""

import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

from ..config import appsettings
from ..models.diagnostics import DiagnosticSink
from ..models.directives import (
    ArgSpec,
    BodySpec,
    DirectiveData,
    DirectiveInvocation,
    DirectiveSpec,
    OptionSpec,
    OptionType,
)
from ..models.nodes import (
    Bare,
    Block,
    BuildResult,
    Caption,
    Code,
    Container,
    Node,
    Output,
    Paragraph,
    Wrapped,
)
from .inline import inline_parse
from .labels import NormalizedLabel, label_normalize
from .options import codeBlockOptions_get, option_coerce


class DirectiveConflictError(Exception):
    """Raised when a directive name or alias is already registered"""
    pass


class DirectiveRegistry:
    """
    Registry of directive specifications

    Maps every directive name and alias to its DirectiveSpec.
    """

    def __init__(self, specs: Optional[Iterable[DirectiveSpec]] = None) -> None:
        """
        Initialize the registry

        Args:
            specs: Directives to register; the built-in code directives are
                   registered when omitted
        """
        self.specs: Dict[str, DirectiveSpec] = {}
        if specs is None:
            self.codeDirectives_register()
        else:
            for spec in specs:
                self.register(spec)

    def register(self, spec: DirectiveSpec) -> None:
        """
        Register a directive specification under its name and aliases

        Raises:
            DirectiveConflictError: If any name is already taken
        """
        taken = [name for name in spec.names if name in self.specs]
        if taken:
            raise DirectiveConflictError(
                f"Directive '{spec.name}' conflicts with registered name(s): {', '.join(taken)}"
            )
        for name in spec.names:
            self.specs[name] = spec

    def resolve(self, name: str) -> Optional[DirectiveSpec]:
        """Get a directive spec by name or alias, None if not found"""
        return self.specs.get(name)

    def directives_list(self) -> List[DirectiveSpec]:
        """Registered specs, each once, in registration order"""
        unique: Dict[str, DirectiveSpec] = {}
        for spec in self.specs.values():
            unique.setdefault(spec.name, spec)
        return list(unique.values())

    def data_build(
        self,
        invocation: DirectiveInvocation,
        sink: DiagnosticSink,
        context: Optional[Mapping[str, Any]] = None,
    ) -> DirectiveData:
        """
        Validate and coerce a raw invocation

        Unknown, duplicated and uncoercible options are reported and dropped;
        an argument or body the directive does not accept is reported and
        ignored. The directive itself always runs.

        Returns:
            DirectiveData holding only coerced values
        """
        spec = invocation.spec
        node = invocation.node
        source = f"{spec.name}:options"

        options: Dict[str, Any] = {}
        for raw_name, raw_value in invocation.options.items():
            canonical = spec.option_resolve(raw_name)
            if canonical is None:
                sink.warn(
                    f'Unknown option "{raw_name}" for directive "{invocation.name}"',
                    node.option_select(raw_name),
                    source=source,
                )
                continue
            if canonical in options:
                sink.warn(
                    f'Option "{raw_name}" duplicates "{canonical}" for directive "{invocation.name}"',
                    node.option_select(raw_name),
                    source=source,
                )
                continue
            coerced = option_coerce(raw_value, spec.options[canonical], sink, node.option_select(canonical))
            if not coerced.ok:
                sink.error(
                    f'Invalid option "{raw_name}" for directive "{invocation.name}": {coerced.message}',
                    node.option_select(raw_name),
                    source=source,
                )
                continue
            if coerced.value is not None:
                options[canonical] = coerced.value

        arg: Any = None
        if spec.arg is not None:
            coerced = option_coerce(invocation.arg.strip() or None, OptionSpec(type=spec.arg.type))
            if not coerced.ok:
                sink.error(f'Invalid argument for directive "{invocation.name}": {coerced.message}', node)
            arg = coerced.value
        elif invocation.arg.strip():
            sink.warn(f'Directive "{invocation.name}" does not take an argument', node, source=f"{spec.name}:arg")

        body: Optional[str] = None
        if spec.body is not None:
            body = invocation.body
        elif invocation.body.strip():
            sink.warn(f'Directive "{invocation.name}" does not take a body', node, source=f"{spec.name}:body")

        return DirectiveData(
            name=invocation.name,
            arg=arg,
            options=options,
            body=body,
            node=node,
            context=dict(context or {}),
        )

    def invoke(
        self,
        invocation: DirectiveInvocation,
        sink: DiagnosticSink,
        context: Optional[Mapping[str, Any]] = None,
    ) -> List[Node]:
        """Coerce an invocation and run its directive"""
        data = self.data_build(invocation, sink, context)
        return invocation.spec.run(data, sink)

    def codeDirectives_register(self) -> None:
        """Register the code block and executable code cell directives"""
        self.register(CODE_DIRECTIVE)
        self.register(CODE_CELL_DIRECTIVE)


def language_fromFilename(filename: Optional[str]) -> Optional[str]:
    """
    Infer a code language from a filename through Pygments

    Example:
        >>> language_fromFilename("setup.py")
        'python'
    """
    if not filename:
        return None
    try:
        lexer = get_lexer_for_filename(filename)
    except ClassNotFound:
        return None
    return lexer.aliases[0] if lexer.aliases else None


def outputId_make() -> str:
    """Fresh unique id for an output node"""
    return uuid.uuid4().hex


def codeNode_build(code: Code, label: Optional[NormalizedLabel], caption: Optional[str]) -> BuildResult:
    """
    Place a code node either bare or inside a captioned container

    Without a caption the code node carries the label itself. With a caption
    the label moves to the container and the code node carries none.
    """
    if not caption:
        code.label = label.label if label else None
        code.identifier = label.identifier if label else None
        return Bare(code)
    container = Container(
        kind='code',
        label=label.label if label else None,
        identifier=label.identifier if label else None,
        children=[code, Caption(children=[Paragraph(children=inline_parse(caption))])],
    )
    return Wrapped(container)


def code_run(data: DirectiveData, sink: DiagnosticSink) -> List[Node]:
    """Handle code / code-block / sourcecode"""
    label = label_normalize(data.options.get('label'))
    display = codeBlockOptions_get(data.options, sink, data.node)
    code = Code(
        lang=data.arg or language_fromFilename(display['filename']),
        value=data.body or '',
        class_name=data.options.get('class'),
        **display,
    )
    return codeNode_build(code, label, data.options.get('caption')).nodes()


def codeCell_run(data: DirectiveData, sink: DiagnosticSink) -> List[Node]:
    """Handle code-cell - executable code with an empty output"""
    label = label_normalize(data.options.get('label'))
    code = Code(
        lang=data.arg or data.context.get('language') or appsettings.default_language,
        value=data.body or '',
        executable=True,
    )
    block = Block(
        label=label.label if label else None,
        identifier=label.identifier if label else None,
        children=[code, Output(id=outputId_make(), data=[])],
        data={'type': 'notebook-code'},
    )
    tags = data.options.get('tags')
    if tags:
        block.data['tags'] = tags
    return [block]


CODE_DIRECTIVE_OPTIONS: Dict[str, OptionSpec] = {
    'caption': OptionSpec(
        type=OptionType.STRING,
        doc='A parsed caption for the code block.',
    ),
    'linenos': OptionSpec(
        type=OptionType.BOOLEAN,
        doc='Show line numbers',
    ),
    'lineno-start': OptionSpec(
        type=OptionType.NUMBER,
        doc='Start line numbering from a particular value, default is 1. '
            'If present, line numbering is activated.',
        sentinels=('match',),
    ),
    'lineno-match': OptionSpec(
        type=OptionType.BOOLEAN,
        doc='Number lines to match the lines of the included source.',
    ),
    'number-lines': OptionSpec(
        type=OptionType.NUMBER,
        doc='Alternative for "lineno-start", turns on line numbering and can be '
            'an integer that is the start of the line numbering.',
    ),
    'emphasize-lines': OptionSpec(
        type=OptionType.STRING,
        doc='Emphasize particular lines (comma-separated numbers), e.g. "3,5"',
    ),
    'filename': OptionSpec(
        type=OptionType.STRING,
        doc='Show the filename in addition to the rendered code. Set to `false` '
            'to turn off a default filename.',
    ),
}

CODE_DIRECTIVE = DirectiveSpec(
    name='code',
    run=code_run,
    doc='A code-block environment with a language as the argument, and options for '
        'highlighting, showing line numbers, and an optional filename.',
    aliases=('code-block', 'sourcecode'),
    arg=ArgSpec(type=OptionType.STRING, doc='Code language, for example `python` or `typescript`'),
    options={
        'label': OptionSpec(type=OptionType.STRING, aliases=('name',)),
        'class': OptionSpec(type=OptionType.STRING),
        **CODE_DIRECTIVE_OPTIONS,
    },
    body=BodySpec(type=OptionType.STRING, doc='The raw code to display for the code block.'),
    examples=(
        '```{code-block} python\n:linenos:\nprint("hi")\n```',
        '```{code} python\n:caption: Greeting\n:label: greet\nprint("hi")\n```',
    ),
)

CODE_CELL_DIRECTIVE = DirectiveSpec(
    name='code-cell',
    run=codeCell_run,
    doc='An executable code cell',
    arg=ArgSpec(
        type=OptionType.STRING,
        doc='Language for execution and display, for example `python`. It defaults '
            'to the language of the notebook or containing markdown file.',
    ),
    options={
        'label': OptionSpec(type=OptionType.STRING, aliases=('name',)),
        'tags': OptionSpec(
            type=OptionType.LIST,
            aliases=('tag',),
            doc='A comma-separated list of tags to add to the cell, for example, '
                '`remove-input` or `hide-cell`.',
        ),
    },
    body=BodySpec(type=OptionType.STRING, doc='The code to be executed and displayed.'),
    examples=(
        '```{code-cell} python\n:tags: remove-input\nprint("hi")\n```',
    ),
)
