"""SolarisModbusClient: thin wrapper over pymodbus that reads input-register ranges as raw words."""

import logging
from typing import Any

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException as PymodbusException

from .config import InverterSettings
from .errors import TransportError

logger = logging.getLogger(__name__)


class SolarisModbusClient:
    """
    Modbus TCP connection to one device, opened per poll cycle.
    Addresses passed to read_registers are 0-based protocol addresses.
    """

    def __init__(
        self,
        host: str,
        port: int = 502,
        unit_id: int = 1,
        connect_timeout: float = 5.0,
        read_timeout: float = 5.0,
    ) -> None:
        self._host = host
        self._port = port
        self._unit_id = unit_id
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._client: ModbusTcpClient | None = None

    @property
    def host(self) -> str:
        return self._host

    def _get_client(self) -> ModbusTcpClient:
        if self._client is None:
            # pymodbus has a single timeout for connect and requests
            client = ModbusTcpClient(
                host=self._host,
                port=self._port,
                timeout=max(self._connect_timeout, self._read_timeout),
                retries=0,
            )
            if not client.connect():
                client.close()
                raise TransportError(f"Failed to connect to {self._host}:{self._port}")
            self._client = client
        return self._client

    def connect(self) -> None:
        """Establish TCP connection to the device."""
        self._get_client()

    def close(self) -> None:
        """Close the TCP connection."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Error closing Modbus client: %s", e)
            self._client = None

    def __enter__(self) -> "SolarisModbusClient":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def read_registers(self, address: int, count: int) -> list[int]:
        """Read count input registers starting at 0-based address; raise TransportError on failure."""
        client = self._get_client()
        try:
            rr = client.read_input_registers(address, count=count, device_id=self._unit_id)
        except PymodbusException as e:
            raise TransportError(str(e), address=address, count=count, cause=e) from e
        if rr.isError():
            raise TransportError(
                str(rr),
                address=address,
                count=count,
                cause=getattr(rr, "exception", None),
            )
        registers = getattr(rr, "registers", None)
        if not registers or len(registers) < count:
            raise TransportError(
                "Short register response",
                address=address,
                count=count,
            )
        return [int(r) for r in registers[:count]]


def open_client(settings: InverterSettings) -> SolarisModbusClient:
    """Create and connect a client for the configured device; raises TransportError."""
    client = SolarisModbusClient(
        host=settings.inverter_address,
        port=settings.inverter_port,
        unit_id=settings.inverter_modbus_uid,
        connect_timeout=settings.tcp_connect_timeout,
        read_timeout=settings.tcp_read_timeout,
    )
    client.connect()
    return client
