# app/api/todos.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status as http_status

from app.core.deps import get_todo_service
from app.db.models import TodoPriority, TodoStatus
from app.instrumentation.performance import Layer, performance_logged
from app.schemas.todos import TodoPage, TodoRequest, TodoResponse, TodoSearchCriteria
from app.utils.pagination import get_pagination_params

router = APIRouter()

CONTROLLER = "TodoRestController"


@router.post("", response_model=TodoResponse, status_code=http_status.HTTP_201_CREATED)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def create_todo(data: TodoRequest, service=Depends(get_todo_service)):
    return service.create(data)


@router.get("", response_model=TodoPage)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def list_todos(pagination: dict = Depends(get_pagination_params), service=Depends(get_todo_service)):
    page = service.find_all(page=pagination["page"], limit=pagination["limit"])
    return TodoPage(
        items=[TodoResponse.model_validate(todo) for todo in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
    )


@router.get("/search", response_model=List[TodoResponse])
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def search_todos(
    keyword: str = Query(default=None, max_length=100),
    status: TodoStatus = Query(default=None),
    priority: TodoPriority = Query(default=None),
    service=Depends(get_todo_service),
):
    return service.search(TodoSearchCriteria(keyword=keyword, status=status, priority=priority))


@router.get("/overdue", response_model=List[TodoResponse])
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def overdue_todos(service=Depends(get_todo_service)):
    return service.find_overdue()


@router.get("/status/{todo_status}", response_model=List[TodoResponse])
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def todos_by_status(todo_status: TodoStatus, service=Depends(get_todo_service)):
    return service.find_by_status(todo_status)


@router.get("/count/{todo_status}")
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def count_by_status(todo_status: TodoStatus, service=Depends(get_todo_service)):
    return {"status": todo_status, "count": service.count_by_status(todo_status)}


@router.get("/{todo_id}", response_model=TodoResponse)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def get_todo(todo_id: int, service=Depends(get_todo_service)):
    return service.find_by_id(todo_id)


@router.put("/{todo_id}", response_model=TodoResponse)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def update_todo(todo_id: int, data: TodoRequest, service=Depends(get_todo_service)):
    return service.update(todo_id, data)


@router.delete("/{todo_id}", status_code=http_status.HTTP_204_NO_CONTENT)
@performance_logged(Layer.CONTROLLER, CONTROLLER)
def delete_todo(todo_id: int, service=Depends(get_todo_service)):
    service.delete(todo_id)
    return Response(status_code=http_status.HTTP_204_NO_CONTENT)
