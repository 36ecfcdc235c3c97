from __future__ import annotations
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..ai_client import LLMClient, get_llm_client
from ..chat_assistant import answer_question, load_student_context
from .auth import get_current_teacher
from .students import get_owned_student
from ..db import get_db
from ..models import ChatMessage, StudentChat, Teacher
from ..schemas import ChatCreate, ChatOut, MessageCreate, MessagesResponse

router = APIRouter(prefix="/api", tags=["chat"])

logger = logging.getLogger(__name__)


def _get_chat(db: Session, chat_id: str, teacher: Teacher) -> StudentChat:
	chat = db.get(StudentChat, chat_id)
	if chat is None:
		raise HTTPException(status_code=404, detail="Chat not found")
	if chat.teacher_id != teacher.id:
		raise HTTPException(status_code=403, detail="Access denied")
	return chat


@router.get("/students/{student_id}/chats", response_model=List[ChatOut])
async def list_chats(student_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	get_owned_student(db, student_id, teacher)
	return (
		db.query(StudentChat)
		.filter(StudentChat.student_id == student_id)
		.order_by(StudentChat.updated_at.desc())
		.all()
	)


@router.post("/students/{student_id}/chats", status_code=201, response_model=ChatOut)
async def create_chat(
	student_id: str,
	req: ChatCreate,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	student = get_owned_student(db, student_id, teacher)
	title = (req.title or "").strip() or f"Chat - {student.name}"
	chat = StudentChat(student_id=student_id, teacher_id=teacher.id, title=title)
	db.add(chat)
	db.commit()
	db.refresh(chat)
	return chat


@router.get("/chats/{chat_id}", response_model=ChatOut)
async def get_chat(chat_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	return _get_chat(db, chat_id, teacher)


@router.get("/chats/{chat_id}/messages", response_model=MessagesResponse)
async def list_messages(chat_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	_get_chat(db, chat_id, teacher)
	messages = (
		db.query(ChatMessage)
		.filter(ChatMessage.chat_id == chat_id)
		.order_by(ChatMessage.timestamp)
		.all()
	)
	return {"messages": messages}


@router.post("/chats/{chat_id}/messages", status_code=201, response_model=MessagesResponse)
async def send_message(
	chat_id: str,
	req: MessageCreate,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
	client: LLMClient = Depends(get_llm_client),
):
	content = (req.content or "").strip()
	if not content:
		raise HTTPException(status_code=400, detail="Message content is required")
	chat = _get_chat(db, chat_id, teacher)
	ctx = load_student_context(db, chat.student_id)
	if ctx is None:
		raise HTTPException(status_code=404, detail="Student not found")
	user_message = ChatMessage(chat_id=chat_id, role="user", content=content)
	db.add(user_message)
	db.commit()
	db.refresh(user_message)
	reply = await answer_question(client, ctx, content)
	assistant_message = ChatMessage(chat_id=chat_id, role="assistant", content=reply)
	db.add(assistant_message)
	chat.updated_at = datetime.utcnow()
	db.add(chat)
	db.commit()
	db.refresh(assistant_message)
	return {"messages": [user_message, assistant_message]}
