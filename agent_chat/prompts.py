"""Handlebars system prompts describing the directive syntax and the tools."""

from collections.abc import Callable
from typing import Any

import pybars

from agent_chat.directives import FUNCTION_CALL_MARKER

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# Literal JSON is passed in through {{{example}}}: a bare "}}" in the template
# source would be read as the end of a tag.
SYSTEM_PROMPTS: dict[str, str] = {
    "en": """{{{persona}}}

## Capabilities
When the user asks for something you can do with a function, call it by writing
the call inline in your reply, exactly in this form:
{{{example}}}
Use only the parameters listed for that function. Put at most one call in a
reply; only the last one is executed.
The system runs the call and adds its result to the conversation as a new
message. In your next reply, continue with the next step or summarise the
result for the user.

Available functions:
{{#each tools}}
- `{{name}}`: {{description}} (params: `{{{params}}}`)
{{/each}}
""",
    "zh-Hans": """{{{persona}}}

## 能力
当用户的请求可以通过函数完成时，请在回复中直接写出调用，格式必须为：
{{{example}}}
只使用该函数列出的参数。每条回复最多包含一个调用，只有最后一个会被执行。
系统会执行调用，并把结果作为新消息加入对话。在下一次回复中，请根据结果继续下一步或向用户总结。

可用函数：
{{#each tools}}
- `{{name}}`：{{description}}（参数：`{{{params}}}`）
{{/each}}
""",
}

DEFAULT_PERSONA = {
    "en": "You are a helpful assistant built into a desktop application.",
    "zh-Hans": "你是内置于桌面应用中的智能助手。",
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_system_prompt(
    tools: list[dict[str, str]],
    language: str = "en",
    persona: str | None = None,
) -> str:
    """Render the system prompt for *language*, falling back to English.

    ``tools`` is the output of a dispatcher's ``describe()``: dicts with
    name, description and params.
    """
    lang = language if language in SYSTEM_PROMPTS else "en"
    example = FUNCTION_CALL_MARKER + '{"name": "function_name", "params": {"key": "value"}}'
    return render_prompt(SYSTEM_PROMPTS[lang], {
        "persona": persona or DEFAULT_PERSONA[lang],
        "example": example,
        "tools": tools,
    })
