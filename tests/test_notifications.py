from notifications import Notifier


def booking():
    return {
        "title": "Cabin by the lake",
        "transaction_id": "pi_123",
        "guest": {"email": "g@x.com", "name": "Gus"},
        "host": {"email": "h@x.com"},
    }


def test_console_provider_only_logs(sent_emails, caplog):
    sent_emails.reset_mock()
    caplog.set_level("INFO")

    Notifier("console", "noreply@x.com").notify_booking(booking())

    sent_emails.assert_not_called()
    assert "g@x.com" in caplog.text
    assert "h@x.com" in caplog.text


def test_resend_provider_sends_guest_and_host_emails(sent_emails):
    sent_emails.reset_mock(side_effect=True)

    Notifier("resend", "noreply@x.com", "re_test").notify_booking(booking())

    sent = [call.args[0] for call in sent_emails.call_args_list]
    assert [email["to"] for email in sent] == ["g@x.com", "h@x.com"]
    assert all(email["from"] == "noreply@x.com" for email in sent)
    assert "pi_123" in sent[0]["html"]


def test_failed_send_is_logged_and_swallowed(sent_emails, caplog):
    sent_emails.reset_mock()
    sent_emails.side_effect = [RuntimeError("boom"), {"id": "ok"}]

    Notifier("resend", "noreply@x.com", "re_test").notify_booking(booking())

    assert sent_emails.call_count == 2
    assert "Failed to send booking email to g@x.com" in caplog.text
    sent_emails.side_effect = None
