"""
In-memory chat context shared by the test modules.

FakeContext plays the triggering message: it records what is sent and serves
scripted replies. Replies share the sent log and the reply queue of the
context they come from, like messages of one conversation.
"""
import asyncio


class FakeContext:
    def __init__(self, content="", *, author="author", channel="channel", replies=(), sent=None):
        self.content = content
        self.author = author
        self.channel = channel
        self.replies = replies if isinstance(replies, list) else list(replies)
        self.sent = [] if sent is None else sent

    async def send(self, content):
        self.sent.append(content)
        return content

    async def wait_reply(self, timeout):
        if not self.replies:
            # Nobody answers: outlive the deadline the prompt is waiting with.
            await asyncio.sleep(timeout * 4)
            raise TimeoutError
        return FakeContext(
            self.replies.pop(0),
            author=self.author,
            channel=self.channel,
            replies=self.replies,
            sent=self.sent,
        )

    def __repr__(self):
        return "FakeContext(%r)" % self.content
