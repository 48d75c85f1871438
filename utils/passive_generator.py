from nonebot.adapters.satori import MessageEvent, MessageSegment


class PassiveGenerator:
    """Builds qq:passive elements so replies count as passive messages.

    Every reply to the same event needs its own seq, so keep one generator
    per handler invocation and read `element` once per message sent.
    """

    def __init__(self, event: MessageEvent):
        self.event = event
        self.seq = 0

    @property
    def element(self) -> MessageSegment:
        self.seq += 1
        return MessageSegment(
            type="qq:passive",
            data={"id": self.event.message.id, "seq": self.seq},
        )
