class Messages:
    NOT_IN_CHANNEL = "只能在群聊中使用红包功能哦"
    CREATE_USAGE = (
        "格式错误！用法：发红包 <金额> <个数> [祝福语]".replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )
    INVALID_AMOUNT = "红包金额无效，单个红包金额不能少于 0.01 元"
    INVALID_COUNT = "红包个数必须是正整数"
    INSUFFICIENT_BALANCE = "余额不足！你当前有 {balance} 元"
    CREATE_FAILED = "发红包失败，请稍后再试"
    CREATE_SUCCESS = "[红包] {wishes}\n编号: {index}，金额: {amount} 元，个数: {count}，有效期 {hours} 小时"
    LIST_EMPTY = "当前群聊中没有可领取的红包"
    LIST_HEADER = "当前群聊中红包列表（{count} 个）:"
    LIST_ITEM = "{index}. {wishes} | {sender} | 剩余 {remain_amount}/{total_amount} 元 | 个数 {remain_num}/{total_num}"
    DETAIL_USAGE = "格式错误！用法：红包详情 &lt;编号&gt;"
    DETAIL_HEADER = "{sender}的红包「{wishes}」\n已领取 {claimed}/{total_num} 个，共 {claimed_amount}/{total_amount} 元"
    DETAIL_RECORD = "{user} {amount} 元{best}"
    DETAIL_BEST = "（手气最佳）"
    STATUS_EXPIRED = "（已过期）"
    CLAIM_USAGE = "格式错误！用法：抢红包 [编号]"
    CLAIM_NOT_FOUND = "未找到该红包"
    CLAIM_NO_ACTIVE = "当前群聊中没有可领取的红包"
    CLAIM_ALREADY = "你已经抢过这个红包了，抢到了 {amount} 元"
    CLAIM_EXHAUSTED = "手慢了，红包派完了"
    CLAIM_EXPIRED = "这个红包已经过期了"
    CLAIM_FAILED = "抢红包失败，请稍后再试"
    CLAIM_SUCCESS = "恭喜你抢到 {amount} 元！"
    CLAIM_COMPLETE = "{sender}的红包在{duration}内被抢完，{best_user}是手气王（{best_amount} 元）！"
    CLAIM_CREDIT_FAILED = "（入账失败，请联系管理员补发）"
    CHARACTER_USAGE = "格式错误！用法：角色发红包 &lt;角色&gt; &lt;金额&gt; [祝福语]"
    CHARACTER_NOT_FOUND = "群里没有叫 {name} 的成员"
    CHARACTER_INVALID_AMOUNT = "红包金额无效，群里有 {count} 个成员，至少需要 {minimum} 元"
    CHARACTER_SUCCESS = "{sender} 发了一个红包！\n[红包] {wishes}\n编号: {index}，金额: {amount} 元，个数: {count}"
