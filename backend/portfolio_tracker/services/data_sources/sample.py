from typing import Optional
from datetime import date, timedelta

from portfolio_tracker.schemas.records import (
    UserRecord, PortfolioRecord, StockRecord, PositionRecord, PriceObservation
)
from portfolio_tracker.services.data_sources.memory import InMemoryDataSource

# 演示数据集 (Sample Indian Market Dataset)
# 五位投资者、七个组合 (其中一个为空组合)、NSE 蓝筹股及近六个月的月度收盘价。
# 汽车与金属类周期股处于浮亏状态，用于演示最差表现与浮亏预警。

SAMPLE_USERS = [
    # (user_id, username, first_name, last_name, pan_number, phone_number, city, state)
    (1, "raj_investor", "Raj", "Sharma", "ABCPS1234A", "+91-9820012345", "Mumbai", "Maharashtra"),
    (2, "priya_trader", "Priya", "Patel", "BCDPP2345B", "+91-9876501234", "Ahmedabad", "Gujarat"),
    (3, "amit_growth", "Amit", "Kumar", "CDEPK3456C", "+91-9845098450", "Bengaluru", "Karnataka"),
    (4, "sneha_value", "Sneha", "Iyer", "DEFPI4567D", "+91-9840011223", "Chennai", "Tamil Nadu"),
    (5, "vikram_sip", "Vikram", "Singh", "EFGPS5678E", "+91-9811022334", "New Delhi", "Delhi"),
]

SAMPLE_PORTFOLIOS = [
    # (portfolio_id, user_id, portfolio_name, description)
    (1, 1, "Tech Focus Portfolio", "Large-cap Indian IT services"),
    (2, 1, "Dividend Income Portfolio", "High dividend yield PSU and FMCG names"),
    (3, 2, "Growth Portfolio", "Conglomerates and private banks"),
    (4, 3, "Blue Chip Portfolio", "Nifty 50 leaders"),
    (5, 4, "Banking & Finance", "Private sector banking"),
    (6, 5, "Monthly SIP Portfolio", "Systematic monthly investments"),
    (7, 3, "Cyclicals Turnaround", "Auto and metals cyclical bets"),
]

SAMPLE_STOCKS = [
    # (stock_id, symbol, company_name, sector, market_cap_category)
    (1, "TCS", "Tata Consultancy Services Limited", "Information Technology", "Large Cap"),
    (2, "INFY", "Infosys Limited", "Information Technology", "Large Cap"),
    (3, "RELIANCE", "Reliance Industries Limited", "Oil Gas & Consumable Fuels", "Large Cap"),
    (4, "HDFCBANK", "HDFC Bank Limited", "Financial Services", "Large Cap"),
    (5, "MARUTI", "Maruti Suzuki India Limited", "Automobile and Auto Components", "Large Cap"),
    (6, "ICICIBANK", "ICICI Bank Limited", "Financial Services", "Large Cap"),
    (7, "TATAMOTORS", "Tata Motors Limited", "Automobile and Auto Components", "Large Cap"),
    (8, "HINDALCO", "Hindalco Industries Limited", "Metals & Mining", "Large Cap"),
    (9, "TATASTEEL", "Tata Steel Limited", "Metals & Mining", "Large Cap"),
]

SAMPLE_POSITIONS = [
    # (holding_id, portfolio_id, stock_id, shares_held, average_purchase_price)
    (1, 1, 1, 50, 4100.00),
    (2, 1, 2, 100, 1800.00),
    (3, 3, 3, 200, 2950.00),
    (4, 3, 4, 150, 1670.00),
    (5, 4, 5, 15, 11850.00),
    (6, 5, 6, 200, 1285.00),
    (7, 6, 6, 950, 1315.00),
    (8, 7, 7, 100, 1180.00),
    (9, 7, 8, 150, 616.00),
    (10, 7, 9, 600, 147.75),
]

# 月度收盘价，从旧到新；最后一个值为最新价
SAMPLE_CLOSES = {
    1: [3950.00, 4010.50, 3985.20, 4072.80, 4120.40, 4165.30],
    2: [1720.00, 1755.40, 1780.10, 1762.90, 1810.00, 1835.60],
    3: [2880.00, 2915.60, 2950.30, 2932.10, 2975.00, 2998.40],
    4: [1620.50, 1648.00, 1661.20, 1672.40, 1684.90, 1695.80],
    5: [11500.00, 11720.00, 11810.50, 11905.00, 12040.00, 12150.00],
    6: [1250.00, 1268.40, 1290.20, 1301.70, 1312.00, 1320.50],
    7: [1010.00, 985.50, 962.00, 948.30, 931.60, 915.20],
    8: [640.00, 628.50, 622.10, 615.00, 610.40, 604.75],
    9: [152.00, 150.30, 149.10, 148.60, 147.20, 146.35],
}

# 相邻两次观测间隔 30 天，最新一次落在 today
OBSERVATION_SPACING_DAYS = 30


def build_sample_data_source(today: Optional[date] = None) -> InMemoryDataSource:
    """
    构建演示数据源；价格日期相对 today 生成，保证业绩曲线总落在最近的时间窗口内
    """
    today = today or date.today()
    usernames = {row[0]: row[1] for row in SAMPLE_USERS}
    symbols = {row[0]: row[1] for row in SAMPLE_STOCKS}

    users = [
        UserRecord(
            user_id=user_id,
            username=username,
            email=f"{username}@example.in",
            first_name=first_name,
            last_name=last_name,
            pan_number=pan,
            phone_number=phone,
            city=city,
            state=state,
        )
        for user_id, username, first_name, last_name, pan, phone, city, state in SAMPLE_USERS
    ]
    portfolios = [
        PortfolioRecord(
            portfolio_id=portfolio_id,
            portfolio_name=name,
            description=description,
            user_id=user_id,
            username=usernames[user_id],
        )
        for portfolio_id, user_id, name, description in SAMPLE_PORTFOLIOS
    ]
    stocks = [
        StockRecord(
            stock_id=stock_id,
            symbol=symbol,
            company_name=company,
            sector=sector,
            exchange="NSE",
            market_cap_category=cap,
        )
        for stock_id, symbol, company, sector, cap in SAMPLE_STOCKS
    ]
    positions = [
        PositionRecord(
            holding_id=holding_id,
            portfolio_id=portfolio_id,
            stock_id=stock_id,
            shares_held=shares,
            average_purchase_price=avg_price,
        )
        for holding_id, portfolio_id, stock_id, shares, avg_price in SAMPLE_POSITIONS
    ]

    prices = []
    for stock_id, closes in SAMPLE_CLOSES.items():
        count = len(closes)
        for index, close in enumerate(closes):
            days_back = (count - 1 - index) * OBSERVATION_SPACING_DAYS
            prices.append(PriceObservation(
                stock_id=stock_id,
                symbol=symbols[stock_id],
                price_date=today - timedelta(days=days_back),
                close_price=close,
            ))

    return InMemoryDataSource(
        users=users,
        portfolios=portfolios,
        stocks=stocks,
        positions=positions,
        prices=prices,
    )
