"""WeChat XML envelope encoding and decoding."""

from xml.etree import ElementTree

from ..errors import MalformedMessage
from ..models import InboundMessage, OutboundReply


def _text(root: ElementTree.Element, tag: str, required: bool = True) -> str:
    node = root.find(tag)
    if node is None or node.text is None:
        if required:
            raise MalformedMessage(f"Missing <{tag}> in message")
        return ""
    return node.text


def parse_inbound(xml_text: str | bytes) -> InboundMessage:
    """
    Decode a WeChat text message envelope.

    Raises:
        MalformedMessage: If the XML is invalid, a required field is missing
            or empty, or the message is not a text message.
    """
    try:
        root = ElementTree.fromstring(xml_text)
    except ElementTree.ParseError as e:
        raise MalformedMessage(f"Invalid XML: {e}") from e

    try:
        message_id = int(_text(root, "MsgId"))
        create_time = int(_text(root, "CreateTime", required=False) or 0)
    except ValueError as e:
        raise MalformedMessage(f"Invalid numeric field: {e}") from e

    # Only text messages are answered; image, voice and event pushes are rejected
    msg_type = _text(root, "MsgType")
    if msg_type != "text":
        raise MalformedMessage(f"Unsupported message type: {msg_type!r}")

    return InboundMessage(
        message_id=message_id,
        to_user=_text(root, "ToUserName"),
        from_user=_text(root, "FromUserName"),
        text=_text(root, "Content"),
        create_time=create_time,
        msg_type=msg_type,
    )


def render_reply(reply: OutboundReply) -> str:
    """Encode a passive reply as the <xml> document WeChat expects."""
    root = ElementTree.Element("xml")
    for tag, value in (
        ("ToUserName", reply.to_user),
        ("FromUserName", reply.from_user),
        ("CreateTime", str(reply.created_time)),
        ("MsgType", reply.message_kind),
        ("Content", reply.content),
    ):
        ElementTree.SubElement(root, tag).text = value
    return ElementTree.tostring(root, encoding="unicode")
