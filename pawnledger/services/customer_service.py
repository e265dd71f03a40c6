"""Customer service for PawnLedger."""
from pawnledger.config import CUSTOMERS, UNKNOWN_PLACEHOLDER
from pawnledger.data_structures import Customer, new_id
from pawnledger.exceptions import CustomerNotFoundError, ValidationError
from pawnledger.logging import get_logger

logger = get_logger(__name__)


class CustomerService:
    """Handles customer CRUD operations.

    Deleting a customer removes its loans, and through them their payments
    and interest history, in a single batch write.
    """

    def __init__(self, record_store, loan_service):
        """Initialize CustomerService.

        Args:
            record_store: RecordStore instance for data persistence.
            loan_service: LoanService used to build cascade deletes.
        """
        self.store = record_store
        self.loan_service = loan_service

    def get_customers(self):
        return [Customer.from_record(r) for r in self.store.read_collection(CUSTOMERS)]

    def get_customer(self, customer_id):
        """Raises CustomerNotFoundError if there is no customer with this id."""
        for record in self.store.read_collection(CUSTOMERS):
            if record['id'] == customer_id:
                return Customer.from_record(record)
        raise CustomerNotFoundError(customer_id)

    def get_customer_name(self, customer_id):
        """Customer name, or a placeholder when the customer no longer exists."""
        for record in self.store.read_collection(CUSTOMERS):
            if record['id'] == customer_id:
                return record.get('name', UNKNOWN_PLACEHOLDER)
        return UNKNOWN_PLACEHOLDER

    @staticmethod
    def _validate(customer):
        if not customer.name or not customer.name.strip():
            raise ValidationError("Customer name is required", {'field': 'name'})

    def create_customer(self, name, mobile="", address="", government_id=""):
        """Create a new customer.

        Returns:
            The created Customer.

        Raises:
            ValidationError: If the name is missing.
        """
        customer = Customer(id=new_id(), name=name, mobile=mobile, address=address,
                            government_id=government_id)
        self._validate(customer)

        customers = self.store.read_collection(CUSTOMERS)
        customers.append(customer.to_record())
        self.store.write_collection(CUSTOMERS, customers)
        logger.info("Created customer %s", customer.id)
        return customer

    def update_customer(self, customer_id, name, mobile="", address="", government_id=""):
        """Replace a customer's details.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
            ValidationError: If the name is missing.
        """
        self.get_customer(customer_id)
        customer = Customer(id=customer_id, name=name, mobile=mobile, address=address,
                            government_id=government_id)
        self._validate(customer)

        customers = [customer.to_record() if r['id'] == customer_id else r
                     for r in self.store.read_collection(CUSTOMERS)]
        self.store.write_collection(CUSTOMERS, customers)
        return customer

    def delete_customer(self, customer_id):
        """Delete a customer and everything recorded against its loans.

        Returns:
            IDs of the loans removed with the customer.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        self.get_customer(customer_id)
        loan_ids = [l.id for l in self.loan_service.get_loans(customer_id)]

        batch = self.loan_service.cascade_batch(loan_ids)
        batch[CUSTOMERS] = [r for r in self.store.read_collection(CUSTOMERS)
                            if r['id'] != customer_id]
        self.store.write_collections(batch)
        logger.info("Deleted customer %s with %d loans", customer_id, len(loan_ids))
        return loan_ids
