"""
Minimal run: one SoapClient, a few concurrent calls, background WSDL refresh every 30 minutes.
To run: SOAP_WSDL=http://host/service?wsdl python run_call.py GetLastTradePrice TickerSymbol=ACME
Credentials (optional): SOAP_USERNAME / SOAP_PASSWORD.
"""
import asyncio
import logging
import sys

from soaplink import ClientConfig, SoapClient, get_payload_from_error


async def main(method: str, params: dict) -> None:
    config = ClientConfig.from_env(refresh_after=30 * 60)
    async with SoapClient.from_config(config) as client:
        try:
            responses = await asyncio.gather(*(client.call(method, params) for _ in range(3)))
        except Exception as e:
            payload = get_payload_from_error(e)
            print(f"call failed: {e}", file=sys.stderr)
            if payload is not None:
                print(payload.decode("utf-8"), file=sys.stderr)
            raise SystemExit(1)
        for response in responses:
            print(response.body_text.strip())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    args = sys.argv[1:]
    if not args:
        raise SystemExit("usage: run_call.py METHOD [key=value ...]")
    asyncio.run(main(args[0], dict(a.partition("=")[::2] for a in args[1:])))
