from types import SimpleNamespace

import pytest

from src.services.moderation.discord_gateways import DiscordNotifier, split_dm_content


class _RecordingUser:
    def __init__(self):
        self.messages = []

    async def send(self, content):
        self.messages.append(content)


def test_short_dm_stays_one_message():
    assert split_dm_content("You were warned.", ["https://cdn/a.png"]) == [
        "You were warned.\nhttps://cdn/a.png"
    ]


def test_long_dm_keeps_every_attachment():
    urls = [f"https://cdn.example/{i:03d}/" + "x" * 60 for i in range(60)]

    chunks = split_dm_content("You were banned.", urls)

    assert len(chunks) > 1
    assert all(len(chunk) <= 2000 for chunk in chunks)
    lines = "\n".join(chunks).split("\n")
    assert lines == ["You were banned.", *urls]


def test_oversized_line_is_cut_to_limit():
    chunks = split_dm_content("a" * 30, ["https://cdn/b.png"], limit=20)

    assert chunks == ["a" * 20, "https://cdn/b.png"]


@pytest.mark.asyncio
async def test_notifier_sends_every_chunk():
    user = _RecordingUser()
    bot = SimpleNamespace(get_user=lambda user_id: user)
    urls = ["https://cdn.example/" + "y" * 500 for _ in range(8)]

    await DiscordNotifier(bot).send_direct_message(42, "You were banned.", urls)

    assert len(user.messages) > 1
    assert "\n".join(user.messages).split("\n") == ["You were banned.", *urls]
