class Messages:
    QUERY_USAGE = "格式错误！用法：好感度 [角色] [人设]"
    ADJUST_USAGE = "格式错误！用法：调整好感度 &lt;角色&gt; &lt;变化&gt; [原因]"
    RESET_USAGE = "格式错误！用法：重置角色 &lt;角色&gt;"
    INVALID_CHANGE = "好感度变化必须是 -10 到 10 之间的数字"
    EMPTY = "人设 {session} 下还没有任何好感度记录"
    LIST_HEADER = "人设 {session} 的好感度（{count} 个角色）:"
    LIST_ITEM = "{character}: {score}/1000 Lv.{level} {title}"
    DETAIL = "{character} 对你的好感度: {score}/1000\n等级: Lv.{level} {title}"
    DETAIL_HISTORY = "最近变化:"
    HISTORY_ITEM = "{change:+} {reason}（{old} → {new}）"
    LEVELS_HEADER = "好感度等级:"
    LEVELS_ITEM = "Lv.{level} {title}: {min}-{max}"
    SESSIONS = "你的人设: {sessions}"
    UPDATED = "{character} 的好感度 {change:+}（{reason}），当前 {score}/1000"
    LEVEL_UP = "{character} 和你的关系升级为「{title}」！"
    LEVEL_DOWN = "{character} 和你的关系降为「{title}」……"
    RESET = "已重置 {character} 的好感度（{count} 条记录）"
    RESET_NONE = "{character} 没有好感度记录"
