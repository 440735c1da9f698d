"""Unit tests for transcript messages and expiry."""

from agentstream.messages import (
    Message,
    ToolResultPart,
    error_output,
    expire_messages,
    json_output,
)


def transcript() -> list[Message]:
    return [
        Message(role="system", content="system prompt"),
        Message(role="user", content="step", time_to_live="agentStep"),
        Message(role="user", content="prompt", time_to_live="userPrompt"),
        Message(role="assistant", content="reply"),
    ]


class TestExpireMessages:
    def test_end_of_agent_step(self):
        kept = expire_messages(transcript(), "agentStep")
        assert [m.content for m in kept] == ["system prompt", "prompt", "reply"]

    def test_end_of_user_prompt(self):
        kept = expire_messages(transcript(), "userPrompt")
        assert [m.content for m in kept] == ["system prompt", "reply"]

    def test_returns_new_list(self):
        messages = transcript()
        expire_messages(messages, "agentStep")
        assert len(messages) == 4


class TestToolResults:
    def test_json_output(self):
        (part,) = json_output({"a": 1})
        assert part.model_dump() == {"type": "json", "value": {"a": 1}}

    def test_error_part(self):
        result = ToolResultPart(tool_call_id="c1", tool_name="x", output=error_output("nope"))
        assert result.is_error

    def test_success_part(self):
        result = ToolResultPart(tool_call_id="c1", tool_name="x", output=json_output([1, 2]))
        assert not result.is_error

    def test_tool_message_dump(self):
        result = ToolResultPart(tool_call_id="c1", tool_name="x")
        message = Message.tool(result)

        assert message.model_dump() == {
            "role": "tool",
            "content": {
                "type": "tool-result",
                "tool_call_id": "c1",
                "tool_name": "x",
                "output": [],
            },
            "time_to_live": None,
        }

    def test_assistant_message(self):
        assert Message.assistant("hi").role == "assistant"
