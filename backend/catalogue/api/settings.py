# backend/catalogue/api/settings.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import AdminSetting, RECIPIENT_EMAIL_KEY
from ..schemas.settings import RecipientEmail
from ..services.notifications import get_recipient_email
from ..utils.logging import api_logger

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/recipient-email", response_model=RecipientEmail)
async def read_recipient_email(db: Session = Depends(get_db)):
    return RecipientEmail(recipient_email=get_recipient_email(db))


@router.put("/recipient-email", response_model=RecipientEmail)
async def update_recipient_email(update: RecipientEmail, db: Session = Depends(get_db)):
    api_logger.info("Updating notification recipient", extra={"recipient_email": update.recipient_email})

    setting = db.query(AdminSetting).filter(AdminSetting.setting_key == RECIPIENT_EMAIL_KEY).first()
    try:
        if setting is None:
            setting = AdminSetting(setting_key=RECIPIENT_EMAIL_KEY, setting_value=update.recipient_email)
            db.add(setting)
        else:
            setting.setting_value = update.recipient_email
        db.commit()
    except Exception as e:
        db.rollback()
        api_logger.error("Error updating notification recipient", extra={"error": str(e)})
        raise

    return RecipientEmail(recipient_email=setting.setting_value)
