"""Tests for direct messages."""

from bitwork.models import Message, Notification
from bitwork.services import messages

from conftest import minutes_ago


class TestSendMessage:
    def test_sends_and_notifies(self, db, provider, seeker, job):
        result = messages.send_message(db, seeker.id, provider.id, "  Is Saturday OK?  ", job_id=job.id)
        assert result.success
        assert result.data.content == "Is Saturday OK?"
        assert result.data.is_read is False

        note = db.query(Notification).filter(Notification.user_id == provider.id).one()
        assert note.type == "message"
        assert note.title == "New message from Sam Seeker"
        assert note.message == "Is Saturday OK?"
        assert note.related_job_id == job.id

    def test_empty_rejected(self, db, provider, seeker):
        assert messages.send_message(db, seeker.id, provider.id, "   ").code == "validation_error"

    def test_too_long_rejected(self, db, provider, seeker):
        result = messages.send_message(db, seeker.id, provider.id, "x" * 5001)
        assert result.code == "validation_error"

    def test_cannot_message_self(self, db, seeker):
        assert messages.send_message(db, seeker.id, seeker.id, "hi").code == "validation_error"

    def test_unknown_recipient(self, db, seeker):
        assert messages.send_message(db, seeker.id, "ghost", "hi").code == "not_found"
        assert db.query(Message).count() == 0

    def test_unknown_job(self, db, provider, seeker):
        result = messages.send_message(db, seeker.id, provider.id, "hi", job_id="missing")
        assert result.code == "not_found"


class TestConversation:
    def test_oldest_first_between_pair_only(self, db, provider, seeker, other_seeker):
        for n, (sender, receiver) in enumerate(
            [(seeker, provider), (provider, seeker), (seeker, provider)]
        ):
            message = messages.send_message(db, sender.id, receiver.id, f"m{n}").data
            message.created_at = minutes_ago(10 - n)
        messages.send_message(db, other_seeker.id, provider.id, "unrelated")
        db.commit()

        conversation = messages.get_conversation(db, provider.id, seeker.id)
        assert [m.content for m in conversation] == ["m0", "m1", "m2"]

    def test_mark_read(self, db, provider, seeker):
        messages.send_message(db, seeker.id, provider.id, "one")
        messages.send_message(db, seeker.id, provider.id, "two")
        messages.send_message(db, provider.id, seeker.id, "reply")

        result = messages.mark_conversation_read(db, receiver_id=provider.id, sender_id=seeker.id)
        assert result.data == 2
        unread = db.query(Message).filter(Message.is_read.is_(False)).all()
        assert [m.content for m in unread] == ["reply"]
