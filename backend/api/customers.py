from fastapi import APIRouter, Depends, Response
from typing import List

from constants import HTTPStatus
from dependencies import get_customer_repository
from exceptions import InvalidArgumentError, NotFoundError
from repositories.customer_repository import CustomerRepository
from schemas import Customer, CountResponse
from utils.error_handlers import handle_api_errors

router = APIRouter()


@router.get("/customers", response_model=List[Customer])
@handle_api_errors("List customers")
def list_customers(repo: CustomerRepository = Depends(get_customer_repository)):
    """All customers in insertion order."""
    return repo.find_all()


@router.get("/customers/count", response_model=CountResponse)
@handle_api_errors("Count customers")
def count_customers(repo: CustomerRepository = Depends(get_customer_repository)):
    return CountResponse(count=repo.count())


@router.get("/customers/{customer_id}", response_model=Customer)
@handle_api_errors("Get customer")
def get_customer(customer_id: int, repo: CustomerRepository = Depends(get_customer_repository)):
    customer = repo.find_by_id(customer_id)
    if customer is None:
        raise NotFoundError(repo.entity_type, customer_id)
    return customer


@router.post("/customers", response_model=Customer, status_code=HTTPStatus.CREATED)
@handle_api_errors("Create customer")
def create_customer(customer: Customer, repo: CustomerRepository = Depends(get_customer_repository)):
    """Create a customer; the id is assigned by the store."""
    if customer.id is not None:
        raise InvalidArgumentError(
            "Customer id is assigned by the server; use PUT to update",
            invalid_fields={"id": customer.id},
        )
    return repo.save(customer)


@router.put("/customers/{customer_id}", response_model=Customer)
@handle_api_errors("Update customer")
def update_customer(
    customer_id: int,
    customer: Customer,
    repo: CustomerRepository = Depends(get_customer_repository)
):
    """Replace a stored customer. The path id wins over any id in the body."""
    return repo.save(customer.model_copy(update={'id': customer_id}))


@router.delete("/customers/{customer_id}", status_code=HTTPStatus.NO_CONTENT, response_class=Response)
@handle_api_errors("Delete customer")
def delete_customer(customer_id: int, repo: CustomerRepository = Depends(get_customer_repository)):
    repo.delete_by_id(customer_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)
