from fastapi import Depends
from services.email import ResendEmailClient
from services.lifecycle import ApplicationLifecycle
from services.notifications import NotificationDispatcher
from services.sweeper import EventCompletionSweeper, event_sweeper




def get_email_client() -> ResendEmailClient:
    return ResendEmailClient()


def get_lifecycle(email_client: ResendEmailClient = Depends(get_email_client)) -> ApplicationLifecycle:
    return ApplicationLifecycle(NotificationDispatcher(email_client))


def get_event_sweeper() -> EventCompletionSweeper:
    return event_sweeper
