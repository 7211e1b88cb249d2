"""Plain-text rendering of API payloads."""

from typing import TextIO

# Longest message preview shown in the conversation list
PREVIEW_MAX_LEN = 60


def _preview(text: str, max_len: int = PREVIEW_MAX_LEN) -> str:
    text = text.replace("\n", " ")
    if len(text) > max_len:
        return f"{text[:max_len]}..."
    return text


class ResponseFormatter:
    """Writes history, conversation and summary payloads to a stream."""

    def __init__(self, output: TextIO):
        """Initialize the formatter.

        Parameters
        ----------
        output
            File-like object to write output to.
        """
        self.output = output

    def messages(self, title: str, messages: list[dict]) -> None:
        """Print a chronological list of messages."""
        self._print(f"{title} ({len(messages)} messages)\n")
        for message in messages:
            marker = "" if message.get("read") else " *"
            self._print(
                f"[{message.get('timestamp', '?')}] "
                f"{message.get('sender', '?')} -> {message.get('recipient', '?')}: "
                f"{message.get('content', '')}{marker}\n"
            )

    def history(self, data: dict) -> None:
        self.messages(f"History of {data['username']}", data["messages"])

    def conversation(self, data: dict) -> None:
        user1, user2 = data["participants"]
        self.messages(f"Conversation {user1} <-> {user2}", data["messages"])

    def conversations(self, data: dict) -> None:
        """Print one line per counterpart, most recent first."""
        self._print(
            f"Conversations of {data['username']} ({data['count']})\n"
        )
        for summary in data["conversations"]:
            name = summary.get("first_name") or summary["counterpart_username"]
            details = [
                str(value)
                for value in (summary.get("bio"), summary.get("photo"))
                if value not in (None, "")
            ]
            suffix = f" ({', '.join(details)})" if details else ""
            self._print(
                f"{summary['last_message_timestamp']}  {name}{suffix}: "
                f"{_preview(summary.get('last_message', ''))}\n"
            )

    def sent(self, message: dict) -> None:
        self._print(
            f"Sent to {message['recipient']} at {message['timestamp']} "
            f"(id={message.get('id')})\n"
        )

    def error(self, message: str) -> None:
        self._print(f"Error: {message}\n")

    def _print(self, text: str) -> None:
        """Print text to output stream."""
        self.output.write(text)
        self.output.flush()
