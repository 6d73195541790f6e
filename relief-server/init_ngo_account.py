"""
初始化 NGO 账户
在测试网上生成并激活一个 NGO 账户，输出可写入 .env 的签名凭据
"""
import asyncio

from stellar_sdk import Keypair

from relief.core.container import get_container
from relief.domain.transactions import LedgerError


async def create_ngo_account():
    """创建并资助 NGO 账户"""
    container = get_container()
    try:
        keypair_name = "ngo"
        if keypair_name in container.credentials.names:
            state = await container.ledger.get_account(container.credentials.resolve(keypair_name).public_key)
            print(f"NGO 账户已配置: {state.account_id}")
            return

        account = Keypair.random()
        await container.ledger.fund(account.public_key)
        state = await container.ledger.get_account(account.public_key)
        balance = next((item.balance for item in state.balances if item.asset_issuer is None), 0)

        print(f"NGO 账户创建成功: {account.public_key} (余额 {balance} XLM)")
        print(f"写入 .env: RELIEF_CREDENTIALS__NGO={account.secret}")
    except LedgerError as exc:
        print(f"NGO 账户创建失败: {exc}")
    finally:
        await container.close()


if __name__ == "__main__":
    asyncio.run(create_ngo_account())
