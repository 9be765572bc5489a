class TicketError(Exception): ...
class NotFound(TicketError): ...
class Forbidden(TicketError): ...
class IssuanceFailed(TicketError): ...
class UpdateFailed(TicketError): ...
