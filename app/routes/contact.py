from fastapi import APIRouter, BackgroundTasks
from pydantic import BaseModel, EmailStr, Field
from app.services.email_service import send_contact_message
from app.utils.sanitize import sanitize_input

router = APIRouter()


class ContactMessage(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=2000)


@router.post("")
def contact(data: ContactMessage, background_tasks: BackgroundTasks):
    # delivery is best effort, the visitor always gets the same answer
    background_tasks.add_task(
        send_contact_message,
        sanitize_input(data.name),
        data.email,
        sanitize_input(data.message, max_length=2000),
    )
    return {"message": "Thanks! We will get back to you soon."}
